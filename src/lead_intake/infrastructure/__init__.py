"""
Outbound integrations for the lead intake service.
"""

from .sms import DisabledNotifier, SMSNotifier, TwilioSMSClient, create_notifier

__all__ = ["SMSNotifier", "TwilioSMSClient", "DisabledNotifier", "create_notifier"]
