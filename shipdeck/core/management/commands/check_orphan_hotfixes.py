"""
Django management command to report hotfixes whose release has been deleted.

Deleting a release leaves its hotfixes in place; this lists them and can
optionally remove them.

Usage:
    python manage.py check_orphan_hotfixes
    python manage.py check_orphan_hotfixes --delete
"""
from django.core.management.base import BaseCommand
from django.db.models import Exists, OuterRef
from shipdeck.hotfixes.models import Hotfix
from shipdeck.releases.models import Release


class Command(BaseCommand):
    help = 'List hotfixes that reference a release which no longer exists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--delete',
            action='store_true',
            help='Delete the orphaned hotfixes after listing them',
        )

    def handle(self, *args, **options):
        delete = options.get('delete', False)

        orphans = Hotfix.objects.annotate(
            release_exists=Exists(Release.objects.filter(pk=OuterRef('release_id')))
        ).filter(release_exists=False).order_by('release_id', 'id')

        count = orphans.count()
        if count == 0:
            self.stdout.write(self.style.SUCCESS("No orphaned hotfixes found"))
            return

        self.stdout.write(self.style.WARNING(f"Found {count} orphaned hotfix(es):"))
        for hotfix in orphans:
            self.stdout.write(f"  #{hotfix.id} '{hotfix.title}' (missing release {hotfix.release_id}, created {hotfix.created_at:%Y-%m-%d})")

        if delete:
            ids = list(orphans.values_list('id', flat=True))
            deleted, _ = Hotfix.objects.filter(id__in=ids).delete()
            self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} orphaned hotfix(es)"))
