from django.db import models


class StoredCollection(models.Model):
    """
    One row per store key (e.g. 'igilife_car_policies').
    The payload is the serialized collection document, kept as text so that a
    corrupt value can still be read back and reported.
    """
    key = models.CharField(max_length=100, unique=True)
    payload = models.TextField(blank=True, default='')
    schema_version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']
        verbose_name = "Stored Collection"
        verbose_name_plural = "Stored Collections"

    def __str__(self):
        return f"{self.key} (v{self.schema_version})"
