"""Referral codes and the referral ledger."""

from .services import InvalidReferralCode, ReferralService, SelfReferral

__all__ = ["InvalidReferralCode", "ReferralService", "SelfReferral"]
