"""
Management command to dump every store collection as versioned JSON
"""
import json

from django.core.management.base import BaseCommand

from store.schemas import SCHEMA_VERSION
from store.services import get_store


class Command(BaseCommand):
    help = "Exports all record store collections as JSON"

    def add_arguments(self, parser):
        parser.add_argument(
            '--output',
            type=str,
            default='',
            help='File to write (default: stdout)',
        )

    def handle(self, *args, **options):
        export = {
            key: {'version': SCHEMA_VERSION, 'records': records}
            for key, records in get_store().export().items()
        }
        text = json.dumps(export, indent=2, allow_nan=False)

        output = options['output']
        if not output:
            self.stdout.write(text)
            return

        with open(output, 'w', encoding='utf-8') as fh:
            fh.write(text)
        total = sum(len(collection['records']) for collection in export.values())
        self.stdout.write(self.style.SUCCESS(f"Exported {len(export)} collections ({total} records) to {output}"))
