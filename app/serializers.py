from __future__ import annotations

from app.models import Order, Payment, PosCommand, PosConnectionStatus, Shift, Staff, StaffVenue, Venue


def serialize_order(order: Order) -> dict:
    return {
        'id': order.id,
        'venueId': order.venue_id,
        'externalId': order.external_id,
        'orderNumber': order.order_number,
        'source': order.source,
        'originSystem': order.origin_system,
        'type': order.type,
        'status': order.status,
        'kitchenStatus': order.kitchen_status,
        'paymentStatus': order.payment_status,
        'subtotal': order.subtotal,
        'taxAmount': order.tax_amount,
        'discountAmount': order.discount_amount,
        'tipAmount': order.tip_amount,
        'total': order.total,
        'tableId': order.table_id,
        'shiftId': order.shift_id,
        'servedById': order.served_by_id,
        'createdById': order.created_by_id,
        'syncStatus': order.sync_status,
        'syncedAt': order.synced_at,
        'completedAt': order.completed_at,
        'createdAt': order.created_at,
        'updatedAt': order.updated_at,
    }


def serialize_payment(payment: Payment) -> dict:
    return {
        'id': payment.id,
        'venueId': payment.venue_id,
        'orderId': payment.order_id,
        'shiftId': payment.shift_id,
        'processedById': payment.processed_by_id,
        'amount': payment.amount,
        'tipAmount': payment.tip_amount,
        'method': payment.method,
        'status': payment.status,
        'createdAt': payment.created_at,
    }


def serialize_shift(shift: Shift) -> dict:
    return {
        'id': shift.id,
        'venueId': shift.venue_id,
        'staffId': shift.staff_id,
        'externalId': shift.external_id,
        'posName': shift.pos_name,
        'startTime': shift.start_time,
        'endTime': shift.end_time,
        'status': shift.status,
    }


def serialize_staff(assignment: StaffVenue, staff: Staff) -> dict:
    return {
        'id': staff.id,
        'firstName': staff.first_name,
        'lastName': staff.last_name,
        'email': staff.email,
        'role': assignment.role,
        'posStaffId': assignment.pos_staff_id,
    }


def serialize_venue(venue: Venue, staff_rows: list[tuple[StaffVenue, Staff]]) -> dict:
    return {
        'id': venue.id,
        'organizationId': venue.organization_id,
        'name': venue.name,
        'slug': venue.slug,
        'type': venue.type,
        'address': venue.address,
        'city': venue.city,
        'staff': [serialize_staff(assignment, staff) for assignment, staff in staff_rows],
    }


def serialize_connection(connection: PosConnectionStatus) -> dict:
    return {
        'venueId': connection.venue_id,
        'status': connection.status,
        'instanceId': connection.instance_id,
        'producerVersion': connection.producer_version,
        'lastHeartbeatAt': connection.last_heartbeat_at,
    }


def serialize_command(command: PosCommand) -> dict:
    return {
        'id': command.id,
        'venueId': command.venue_id,
        'entityType': command.entity_type,
        'entityId': command.entity_id,
        'commandType': command.command_type,
        'payload': command.payload,
        'status': command.status,
        'attempts': command.attempts,
        'errorMessage': command.error_message,
        'lastAttemptAt': command.last_attempt_at,
        'completedAt': command.completed_at,
        'createdAt': command.created_at,
    }
