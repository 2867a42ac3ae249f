from django.conf import settings
from django.db import models


class Hotfix(models.Model):
    """A patch record attached to exactly one release"""
    # No DB constraint and no cascade: hotfixes outlive a deleted release
    release = models.ForeignKey(
        'releases.Release', on_delete=models.DO_NOTHING, db_constraint=False, related_name='hotfixes'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    payload = models.JSONField(default=dict, blank=True, help_text="Arbitrary patch fields (ticket, commit, files, ...)")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_hotfixes')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_hotfixes')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'hotfixes'
        ordering = ['id']
