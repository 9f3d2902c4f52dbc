"""
Management command to load a browser localStorage dump into the record store
"""
import json
import os

from django.core.management.base import BaseCommand, CommandError

from store.exceptions import StoreError
from store.schemas import SCHEMAS_BY_KEY
from store.serialization import deserialize
from store.services import get_store


class Command(BaseCommand):
    help = "Imports igilife_* collections from a JSON dump of the browser's localStorage"

    def add_arguments(self, parser):
        parser.add_argument('dump_file', type=str, help='Path to the JSON dump ({"igilife_clients": "[...]", ...})')
        parser.add_argument(
            '--replace',
            action='store_true',
            help='Replace existing collections instead of adding to them',
        )

    def handle(self, *args, **options):
        dump_file = options['dump_file']
        replace = options['replace']

        if not os.path.exists(dump_file):
            raise CommandError(f"Dump file not found at {dump_file}")

        with open(dump_file, encoding='utf-8') as fh:
            try:
                dump = json.load(fh)
            except json.JSONDecodeError as e:
                raise CommandError(f"Dump file is not valid JSON: {e}")

        if not isinstance(dump, dict):
            raise CommandError("Dump file must contain an object mapping storage keys to values")

        store = get_store()
        imported = 0
        skipped = 0

        for key, value in dump.items():
            schema = SCHEMAS_BY_KEY.get(key)
            if schema is None:
                self.stdout.write(self.style.WARNING(f"  [SKIPPED] Unknown key: {key}"))
                skipped += 1
                continue

            # localStorage values are strings; a pre-parsed dump is accepted too
            raw = value if isinstance(value, str) else json.dumps(value)
            try:
                records = deserialize(raw, schema)
            except (ValueError, StoreError) as e:
                self.stdout.write(self.style.ERROR(f"  [ERROR] {key}: {e}"))
                skipped += 1
                continue

            collection = store.collection(schema.name)
            try:
                added, duplicates, rejected = collection.import_records(records, replace=replace)
            except StoreError as e:
                raise CommandError(f"Failed to write {key}: {e}")

            for record, error in rejected:
                self.stdout.write(self.style.ERROR(f"  [ERROR] {key} record {record.get('id', '?')}: {error.summary()}"))
            for record in duplicates:
                self.stdout.write(self.style.WARNING(f"  [SKIPPED] {key} record {record.get('id', '?')}: already stored"))

            imported += 1
            self.stdout.write(f"  [IMPORTED] {key}: {len(added)} records")

        self.stdout.write("-" * 30)
        self.stdout.write(self.style.SUCCESS(f"Import finished. Collections imported: {imported}, skipped: {skipped}."))
