"""
Management command to populate the database with demo data.
"""
import datetime
import random
from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from careops.models import Ambulance, Doctor, Room, User
from careops.services import bookings, dispatch, payments
from careops.services.appointments import create_appointment
from careops.services.transitions import SYSTEM


class Command(BaseCommand):
    help = 'Populate database with demo rooms, ambulances, doctors, staff, patients and bookings'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='Hospital#2024', help='Password for every seeded account.')
        parser.add_argument('--seed', type=int, default=42)

    def handle(self, *args, **options):
        random.seed(options['seed'])
        password = make_password(options['password'])
        self.stdout.write('Creating demo data...')

        rooms = self.create_rooms()
        ambulances = self.create_ambulances()
        doctors = self.create_doctors()
        staff = self.create_staff(password)
        patients = self.create_patients(password)
        self.create_activity(patients, doctors, rooms)

        self.stdout.write(self.style.SUCCESS(
            f'Done: {len(rooms)} rooms, {len(ambulances)} ambulances, {len(doctors)} doctors, '
            f'{len(staff)} staff, {len(patients)} patients.'
        ))

    def create_rooms(self):
        rates = {
            'vip': Decimal('1500000'),
            'class_1': Decimal('750000'),
            'class_2': Decimal('450000'),
            'class_3': Decimal('200000'),
        }
        facilities = {
            'vip': 'Private bathroom, TV, sofa bed, refrigerator',
            'class_1': 'Private bathroom, TV',
            'class_2': 'Shared bathroom, 2 beds',
            'class_3': 'Shared bathroom, 4 beds',
        }
        rooms = []
        for floor, room_type in enumerate(rates, start=1):
            for n in range(1, 4):
                room, _ = Room.objects.get_or_create(
                    room_number=f'{floor}{n:02d}',
                    defaults={'room_type': room_type, 'daily_rate': rates[room_type],
                              'facilities': facilities[room_type]},
                )
                rooms.append(room)
        return rooms

    def create_ambulances(self):
        fleet = [
            ('B 1101 AMB', 'emergency', '500000', '10000', 'Budi Santoso'),
            ('B 1102 AMB', 'emergency', '500000', '10000', 'Agus Wijaya'),
            ('B 2201 AMB', 'transport', '300000', '7500', 'Dedi Kurniawan'),
            ('B 3301 AMB', 'icu', '1200000', '15000', 'Rudi Hartono'),
        ]
        ambulances = []
        for plate, kind, base, per_km, driver in fleet:
            amb, _ = Ambulance.objects.get_or_create(
                plate_number=plate,
                defaults={'ambulance_type': kind, 'base_fare': Decimal(base), 'per_km_fare': Decimal(per_km),
                          'driver_name': driver, 'driver_phone': f'0812{random.randint(10000000, 99999999)}',
                          'current_location': 'Hospital garage'},
            )
            ambulances.append(amb)
        return ambulances

    def create_doctors(self):
        roster = [
            ('dr. Siti Rahma, Sp.PD', 'Internal Medicine', '150000'),
            ('dr. Andi Pratama, Sp.B', 'Surgery', '200000'),
            ('dr. Maya Lestari, Sp.A', 'Pediatrics', '175000'),
            ('dr. Hendra Gunawan, Sp.JP', 'Cardiology', '250000'),
        ]
        schedule = [
            {'day': day, 'start': '08:00', 'end': '12:00'}
            for day in ('monday', 'tuesday', 'wednesday', 'thursday', 'friday')
        ]
        doctors = []
        for name, specialty, fee in roster:
            doc, _ = Doctor.objects.get_or_create(
                name=name,
                defaults={'specialty': specialty, 'consultation_fee': Decimal(fee), 'schedule': schedule},
            )
            doctors.append(doc)
        return doctors

    def create_staff(self, password):
        staff_data = [
            ('superadmin', 'Super Admin', 'super_admin', 'Management'),
            ('reception1', 'Rina Receptionist', 'receptionist', 'Front office'),
            ('finance1', 'Fajar Finance', 'finance', 'Finance'),
            ('medic1', 'Nina Nurse', 'medical_staff', 'Inpatient ward'),
            ('it1', 'Ivan IT', 'it_support', 'IT'),
        ]
        staff = []
        for username, name, role, department in staff_data:
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={'first_name': name, 'role': role, 'department': department, 'is_staff': True,
                          'email': f'{username}@hospital.local', 'password': password},
            )
            staff.append(user)
        return staff

    def create_patients(self, password):
        names = ['Ahmad Fauzi', 'Dewi Sartika', 'Joko Susilo', 'Putri Ayu', 'Bambang Irawan', 'Sri Wahyuni']
        patients = []
        for i, name in enumerate(names, start=1):
            nik = f'31710000000000{i:02d}'
            user, _ = User.objects.get_or_create(
                username=nik,
                defaults={
                    'first_name': name, 'role': 'patient', 'nik': nik, 'password': password,
                    'email': f'patient{i}@example.com', 'phone': f'0813{random.randint(10000000, 99999999)}',
                    'birth_date': datetime.date(1970 + i * 5, i, 10), 'gender': 'M' if i % 2 else 'F',
                    'address': f'Jl. Merdeka No. {i}, Jakarta', 'bpjs_number': f'000{i:010d}' if i % 3 else '',
                },
            )
            patients.append(user)
        return patients

    def create_activity(self, patients, doctors, rooms):
        """A handful of appointments, bookings and requests through the normal workflow."""
        today = timezone.localdate()
        actor = SYSTEM
        for i, patient in enumerate(patients):
            if patient.appointments.exists():
                continue
            appt = create_appointment(
                user=patient, doctor=doctors[i % len(doctors)],
                appointment_date=today + datetime.timedelta(days=i % 3),
                appointment_time=datetime.time(8 + i, 0), coverage='bpjs' if i % 2 else 'self_pay',
                complaint='Routine check-up', actor=actor,
            )
            payments.create_payment(reference=payments.PaymentReference('appointment', appt.pk),
                                    coverage=appt.coverage, payment_method='cash', actor=actor)
            if i < 2:
                checkin = today + datetime.timedelta(days=i)
                bookings.create_booking(
                    user=patient, room=rooms[i], checkin_date=checkin,
                    checkout_date=checkin + datetime.timedelta(days=3), coverage='insurance',
                    appointment=appt, confirm=True, actor=actor,
                )
        if not patients[-1].ambulance_requests.exists():
            dispatch.create_request(
                user=patients[-1], request_type='scheduled', pickup_location='Jl. Sudirman No. 5',
                destination='Main hospital', request_date=today + datetime.timedelta(days=2),
                request_time=datetime.time(9, 30), coverage='bpjs', actor=actor,
            )
