from django.core.management.base import BaseCommand

from music import mongo


class Command(BaseCommand):
    help = "Create the unique and lookup indexes of the music collections"

    def handle(self, *args, **options):
        count = mongo.ensure_indexes()
        self.stdout.write(self.style.SUCCESS(f"Ensured {count} indexes on {mongo.get_db().name}"))
