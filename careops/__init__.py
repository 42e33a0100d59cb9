"""Hospital operations application.

Models, services and API views for appointments, inpatient room
bookings, ambulance dispatch, payments and notifications.
"""
