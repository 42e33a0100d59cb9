from django.core.management.base import BaseCommand
from django.db import transaction

from careops.models import Ambulance, Room
from careops.services.transitions import sync_ambulance_status, sync_room_status


class Command(BaseCommand):
    help = "Re-derive every room and ambulance status from the bookings and requests holding it."

    def handle(self, *args, **options):
        changed = 0
        for room_id, before in Room.objects.values_list('id', 'status'):
            with transaction.atomic():
                room = sync_room_status(room_id)
            if room.status != before:
                changed += 1
                self.stdout.write(f"room {room.room_number}: {before} -> {room.status}")
        for ambulance_id, before in Ambulance.objects.values_list('id', 'status'):
            with transaction.atomic():
                ambulance = sync_ambulance_status(ambulance_id)
            if ambulance.status != before:
                changed += 1
                self.stdout.write(f"ambulance {ambulance.plate_number}: {before} -> {ambulance.status}")
        self.stdout.write(self.style.SUCCESS(f"{changed} resource(s) corrected."))
