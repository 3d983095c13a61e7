import logging
import re

from django.conf import settings
from django.core.mail import send_mail
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+\d{9,15}$')


def send_notification(user, subject, email_message, sms_message):
    """
    Send a notification to a user via email and, when Twilio is configured, SMS.

    Args:
        user: User object to send notification to
        subject: Email subject
        email_message: Email message content
        sms_message: SMS message content

    Returns the list of channels that were delivered.
    """
    delivered = []
    if user.email:
        try:
            send_mail(
                subject=subject,
                message=email_message,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
                fail_silently=False,
            )
            delivered.append('email')
        except Exception as e:
            logger.error(f"Failed to send email to {user.email}: {str(e)}")

    if user.phone_number and settings.TWILIO_ACCOUNT_SID:
        if not PHONE_PATTERN.match(user.phone_number):
            logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
            return delivered
        try:
            twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
            twilio_client.messages.create(
                body=sms_message,
                from_=settings.TWILIO_PHONE_NUMBER,
                to=user.phone_number
            )
            delivered.append('sms')
        except TwilioRestException as e:
            logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")

    return delivered
