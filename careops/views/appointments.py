from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import Appointment
from careops.responses import created, ok
from careops.serializers.workflow import AppointmentSerializer
from careops.services.appointments import create_appointment, update_appointment
from careops.services.audit import log_action
from careops.views.common import (
    actor,
    check_patient_update,
    get_scoped_or_404,
    owner_for_create,
    paginate,
    require_staff,
    scoped,
)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments_list(request):
    if request.method == 'GET':
        qs = scoped(Appointment.objects.select_related('doctor'), request.user).order_by('-appointment_date', '-id')
        appt_status = request.query_params.get('status')
        if appt_status:
            qs = qs.filter(status=appt_status)
        return ok([presenters.appointment(a) for a in paginate(qs, request.query_params)])

    s = AppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)
    v.pop('status', None)
    v['user'] = owner_for_create(request, v)
    appt = create_appointment(actor=actor(request), **v)
    return created(presenters.appointment(appt), 'Appointment created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    appt = get_scoped_or_404(Appointment.objects.select_related('doctor'), request.user, pk)
    if request.method == 'GET':
        return ok(presenters.with_history(presenters.appointment(appt), appt, 'appointment'))

    if request.method == 'PUT':
        check_patient_update(request, request.data)
        s = AppointmentSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        changes = dict(s.validated_data)
        changes.pop('user', None)
        appt = update_appointment(appt.pk, changes, actor=actor(request))
        return ok(presenters.appointment(appt), 'Appointment updated successfully')

    require_staff(request)
    with transaction.atomic():
        log_action(user=request.user, action='appointment_delete', object_type='appointment', object_id=appt.id,
                   detail={'ticket_number': appt.ticket_number}, request=request)
        appt.delete()
    return ok(message='Appointment deleted successfully')
