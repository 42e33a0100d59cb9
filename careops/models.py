"""
Database models for the hospital operations back end.

The transactional entities (appointments, room bookings, ambulance
requests and payments) carry a ``status`` that only ever changes through
``careops.services.transitions``.  Rooms and ambulances are the physical
resources whose availability is derived from the transactional entities
that currently hold them.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


COVERAGE_CHOICES = [
    ('bpjs', 'BPJS'),
    ('insurance', 'Insurance'),
    ('self_pay', 'Self pay'),
]

STAFF_ROLES = {'super_admin', 'receptionist', 'finance', 'medical_staff', 'it_support'}


class User(AbstractUser):
    """Custom user model with a role.

    Patients and staff share one table.  Patients log in with their
    national id (``nik``) as username; staff ("admins") use any staff
    role and may belong to a department.
    """
    ROLE_CHOICES = [
        ('patient', 'Patient'),
        ('super_admin', 'Super Administrator'),
        ('receptionist', 'Receptionist'),
        ('finance', 'Finance'),
        ('medical_staff', 'Medical staff'),
        ('it_support', 'IT support'),
    ]
    GENDER_CHOICES = [
        ('M', 'Male'),
        ('F', 'Female'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='patient', db_index=True)
    nik = models.CharField(max_length=16, unique=True, null=True, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    address = models.TextField(blank=True)
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)
    bpjs_number = models.CharField(max_length=20, blank=True)
    insurance = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)

    @property
    def is_staff_role(self) -> bool:
        return self.role in STAFF_ROLES

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]
    name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    # list of {"day": "monday", "start": "08:00", "end": "12:00"}
    schedule = models.JSONField(default=list, blank=True)
    consultation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"


class Room(models.Model):
    TYPE_CHOICES = [
        ('vip', 'VIP'),
        ('class_1', 'Class 1'),
        ('class_2', 'Class 2'),
        ('class_3', 'Class 3'),
    ]
    STATUS_AVAILABLE = 'available'
    STATUS_OCCUPIED = 'occupied'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OCCUPIED, 'Occupied'),
        (STATUS_MAINTENANCE, 'Maintenance'),
    ]
    room_number = models.CharField(max_length=20, unique=True)
    room_type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    daily_rate = models.DecimalField(max_digits=12, decimal_places=2)
    facilities = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Room {self.room_number} ({self.room_type})"


class Ambulance(models.Model):
    TYPE_CHOICES = [
        ('emergency', 'Emergency'),
        ('transport', 'Transport'),
        ('icu', 'ICU'),
    ]
    STATUS_AVAILABLE = 'available'
    STATUS_OPERATING = 'operating'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OPERATING, 'Operating'),
        (STATUS_MAINTENANCE, 'Maintenance'),
    ]
    plate_number = models.CharField(max_length=20, unique=True)
    ambulance_type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    base_fare = models.DecimalField(max_digits=12, decimal_places=2)
    per_km_fare = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    driver_name = models.CharField(max_length=255)
    driver_phone = models.CharField(max_length=20)
    current_location = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.plate_number} ({self.ambulance_type})"


class Appointment(models.Model):
    SERVICE_CHOICES = [
        ('outpatient', 'Outpatient'),
        ('emergency', 'Emergency'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='appointments')
    service_type = models.CharField(max_length=12, choices=SERVICE_CHOICES, default='outpatient')
    appointment_date = models.DateField(db_index=True)
    appointment_time = models.TimeField()
    complaint = models.TextField(blank=True)
    coverage = models.CharField(max_length=10, choices=COVERAGE_CHOICES)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending', db_index=True)
    ticket_number = models.CharField(max_length=32, unique=True, editable=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.ticket_number


class RoomBooking(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('checkin', 'Checked in'),
        ('checkout', 'Checked out'),
        ('cancelled', 'Cancelled'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='room_bookings')
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='bookings')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='room_bookings'
    )
    checkin_date = models.DateField()
    checkout_date = models.DateField(null=True, blank=True)
    special_requests = models.TextField(blank=True)
    coverage = models.CharField(max_length=10, choices=COVERAGE_CHOICES)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending', db_index=True)
    booking_number = models.CharField(max_length=32, unique=True, editable=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['room', 'checkin_date', 'checkout_date']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(checkout_date__isnull=True) | Q(checkout_date__gt=models.F('checkin_date')),
                name='roombooking_checkout_after_checkin',
            ),
        ]

    def __str__(self) -> str:
        return self.booking_number


class AmbulanceRequest(models.Model):
    TYPE_CHOICES = [
        ('emergency', 'Emergency'),
        ('scheduled', 'Scheduled'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('dispatched', 'Dispatched'),
        ('on_way', 'On the way'),
        ('arrived', 'Arrived'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='ambulance_requests')
    ambulance = models.ForeignKey(
        Ambulance, null=True, blank=True, on_delete=models.PROTECT, related_name='requests'
    )
    request_type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    pickup_location = models.TextField()
    destination = models.TextField()
    patient_condition = models.TextField(blank=True)
    request_date = models.DateField()
    request_time = models.TimeField()
    coverage = models.CharField(max_length=10, choices=COVERAGE_CHOICES)
    distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending', db_index=True)
    request_number = models.CharField(max_length=32, unique=True, editable=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.request_number


class Payment(models.Model):
    """A payment for exactly one service.

    ``service_type`` names which of the three references is populated;
    the check constraint keeps the discriminator and the references in
    agreement so a payment can never point at zero or several services.
    """
    SERVICE_APPOINTMENT = 'appointment'
    SERVICE_ROOM_BOOKING = 'room_booking'
    SERVICE_AMBULANCE = 'ambulance'
    SERVICE_CHOICES = [
        (SERVICE_APPOINTMENT, 'Appointment'),
        (SERVICE_ROOM_BOOKING, 'Room booking'),
        (SERVICE_AMBULANCE, 'Ambulance'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments')
    service_type = models.CharField(max_length=12, choices=SERVICE_CHOICES)
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.CASCADE, related_name='payments'
    )
    room_booking = models.ForeignKey(
        RoomBooking, null=True, blank=True, on_delete=models.CASCADE, related_name='payments'
    )
    ambulance_request = models.ForeignKey(
        AmbulanceRequest, null=True, blank=True, on_delete=models.CASCADE, related_name='payments'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    coverage = models.CharField(max_length=10, choices=COVERAGE_CHOICES)
    payment_method = models.CharField(max_length=50)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    transaction_id = models.CharField(max_length=32, unique=True, editable=False)
    gateway_transaction_id = models.CharField(max_length=100, blank=True)
    receipt_url = models.URLField(blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(service_type='appointment', appointment__isnull=False,
                      room_booking__isnull=True, ambulance_request__isnull=True)
                    | Q(service_type='room_booking', appointment__isnull=True,
                        room_booking__isnull=False, ambulance_request__isnull=True)
                    | Q(service_type='ambulance', appointment__isnull=True,
                        room_booking__isnull=True, ambulance_request__isnull=False)
                ),
                name='payment_exactly_one_reference',
            ),
        ]

    @property
    def target(self):
        """The referenced appointment, booking or ambulance request."""
        return {
            self.SERVICE_APPOINTMENT: self.appointment,
            self.SERVICE_ROOM_BOOKING: self.room_booking,
            self.SERVICE_AMBULANCE: self.ambulance_request,
        }[self.service_type]

    def __str__(self) -> str:
        return self.transaction_id


class Notification(models.Model):
    TYPE_CHOICES = [
        ('appointment', 'Appointment'),
        ('payment', 'Payment'),
        ('ambulance', 'Ambulance'),
        ('room_booking', 'Room booking'),
        ('general', 'General'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='notifications_sent'
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=15, choices=TYPE_CHOICES, default='general')
    is_read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'is_read']),
        ]

    def __str__(self) -> str:
        return f"{self.title} -> {self.user_id}"


class StatusTransition(models.Model):
    """Records a status change of a transactional entity and who made it."""
    entity = models.CharField(max_length=20)
    entity_id = models.PositiveBigIntegerField()
    from_status = models.CharField(max_length=12, null=True, blank=True)
    to_status = models.CharField(max_length=12)
    actor_id = models.PositiveBigIntegerField(null=True, blank=True)
    actor_role = models.CharField(max_length=20, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['entity', 'entity_id', 'timestamp']),
        ]

    def __str__(self) -> str:
        return f"{self.entity}#{self.entity_id}: {self.from_status} → {self.to_status}"


class ReferenceSequence(models.Model):
    """Last number issued for a reference prefix on a given day."""
    prefix = models.CharField(max_length=8)
    day = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['prefix', 'day'], name='unique_reference_prefix_day'),
        ]

    def __str__(self) -> str:
        return f"{self.prefix}{self.day:%Y%m%d}:{self.last_value}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    ip = models.GenericIPAddressField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
