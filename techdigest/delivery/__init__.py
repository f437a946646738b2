"""Delivery channels."""

from .email import BreakingResult, DeliveryResult, EmailSender
from .telegram import TelegramNotifier

__all__ = ["BreakingResult", "DeliveryResult", "EmailSender", "TelegramNotifier"]
