"""
Dashboard, daily report and staff search endpoints.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import Appointment, Payment
from careops.permissions import IsAdminRole
from careops.responses import ok
from careops.serializers.reports import (
    AppointmentSearchSerializer,
    DailyReportQuerySerializer,
    PaymentSearchSerializer,
)
from careops.services import reports
from careops.views.common import paginate


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def dashboard(request):
    return ok(reports.dashboard())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def daily_report(request):
    q = DailyReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return ok(reports.daily_report(q.validated_data.get('date')))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def search_appointments(request):
    q = AppointmentSearchSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    qs = Appointment.objects.select_related('doctor', 'user').order_by('-appointment_date', '-id')
    if v.get('q'):
        term = v['q'].strip()
        qs = qs.filter(
            Q(ticket_number__icontains=term) | Q(user__first_name__icontains=term)
            | Q(user__nik__icontains=term) | Q(doctor__name__icontains=term) | Q(complaint__icontains=term)
        )
    if v.get('status'):
        qs = qs.filter(status=v['status'])
    if v.get('doctor_id'):
        qs = qs.filter(doctor_id=v['doctor_id'])
    if v.get('user_id'):
        qs = qs.filter(user_id=v['user_id'])
    if v.get('start_date'):
        qs = qs.filter(appointment_date__gte=v['start_date'])
    if v.get('end_date'):
        qs = qs.filter(appointment_date__lte=v['end_date'])
    return ok([presenters.appointment(a) for a in paginate(qs, request.query_params)])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def search_payments(request):
    q = PaymentSearchSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    qs = Payment.objects.select_related('user').order_by('-created_at', '-id')
    if v.get('q'):
        term = v['q'].strip()
        qs = qs.filter(
            Q(transaction_id__icontains=term) | Q(gateway_transaction_id__icontains=term)
            | Q(user__first_name__icontains=term) | Q(user__nik__icontains=term)
        )
    for field in ('status', 'service_type', 'user_id'):
        if v.get(field):
            qs = qs.filter(**{field: v[field]})
    if v.get('start_date'):
        qs = qs.filter(created_at__date__gte=v['start_date'])
    if v.get('end_date'):
        qs = qs.filter(created_at__date__lte=v['end_date'])
    return ok([presenters.payment(p) for p in paginate(qs, request.query_params)])
