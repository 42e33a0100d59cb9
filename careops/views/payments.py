from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import Payment
from careops.permissions import IsAdminRole
from careops.responses import created, ok
from careops.serializers.workflow import ConfirmPaymentSerializer, PaymentSerializer, PaymentUpdateSerializer
from careops.services import payments
from careops.services.audit import log_action
from careops.views.common import actor, get_scoped_or_404, owner_for_create, paginate, require_staff, scoped


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payments_list(request):
    if request.method == 'GET':
        qs = scoped(Payment.objects.all(), request.user).order_by('-created_at', '-id')
        for param in ('status', 'service_type'):
            value = request.query_params.get(param)
            if value:
                qs = qs.filter(**{param: value})
        return ok([presenters.payment(p) for p in paginate(qs, request.query_params)])

    s = PaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)
    reference = payments.PaymentReference.from_ids(
        appointment_id=v.pop('appointment_id', None),
        room_booking_id=v.pop('room_booking_id', None),
        ambulance_request_id=v.pop('ambulance_request_id', None),
    )
    v['user'] = owner_for_create(request, v, required=False)
    payment = payments.create_payment(reference=reference, actor=actor(request), **v)
    return created(presenters.payment(payment), 'Payment created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk: int):
    payment = get_scoped_or_404(Payment.objects.all(), request.user, pk)
    if request.method == 'GET':
        return ok(presenters.with_history(presenters.payment(payment), payment, 'payment'))

    require_staff(request)
    if request.method == 'PUT':
        s = PaymentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        payment = payments.update_payment(payment.pk, s.validated_data, actor=actor(request))
        return ok(presenters.payment(payment), 'Payment updated successfully')

    with transaction.atomic():
        log_action(user=request.user, action='payment_delete', object_type='payment', object_id=payment.id,
                   detail={'transaction_id': payment.transaction_id}, request=request)
        payment.delete()
    return ok(message='Payment deleted successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payment_confirm(request, pk: int):
    payment = get_scoped_or_404(Payment.objects.all(), request.user, pk)
    s = ConfirmPaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payment = payments.confirm_payment(payment.pk, actor=actor(request), sender=request.user, **s.validated_data)
    return ok(presenters.payment(payment), 'Payment confirmed')
