import django_filters
from .models import Release


class ReleaseFilter(django_filters.FilterSet):
    """Optional narrowing of a workspace's release list"""
    qa_status = django_filters.ChoiceFilter(choices=Release.QA_STATUS_CHOICES)
    deployed = django_filters.BooleanFilter()
    created_after = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Release
        fields = ['qa_status', 'deployed']
