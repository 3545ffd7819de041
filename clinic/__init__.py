"""Clinic application.

Appointment booking and approval, the doctors directory and the smart
patient queue that orders today's accepted appointments.
"""
