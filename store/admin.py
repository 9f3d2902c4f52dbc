from django.contrib import admin
from .models import StoredCollection


@admin.register(StoredCollection)
class StoredCollectionAdmin(admin.ModelAdmin):
    # Columns to show in the list view
    list_display = ('key', 'schema_version', 'record_count', 'updated_at')
    search_fields = ('key',)
    readonly_fields = ('key', 'schema_version', 'updated_at')

    def record_count(self, obj):
        from .services import get_store
        try:
            return get_store().collection_for_key(obj.key).count()
        except KeyError:
            return '-'

    record_count.short_description = 'Records'
