"""
Withdrawals of released funds.

A professional can take out released funds that earlier withdrawals have
not already claimed, within the configured per-request limits. Requests
for the same professional are serialized on the user row so two
concurrent withdrawals cannot both spend the same balance.

Usage:
    from payments.services import WithdrawalService

    result = WithdrawalService.withdraw_funds(
        professional=request.user,
        amount=Decimal("1500"),
        cvu="0000003100010000000001",
        alias="mi.alias.mp",
    )
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from authentication.models import User
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService
from payments.models import Withdrawal
from payments.services.funds_service import FundsService
from payments.services.ledger_service import parse_amount

if TYPE_CHECKING:
    from django.db.models import QuerySet

CVU_PATTERN = re.compile(r"^[0-9]{22}$")
MIN_ALIAS_LENGTH = 3


class WithdrawalService(BaseService):
    """Request and list professional withdrawals."""

    @classmethod
    def withdraw_funds(
        cls,
        professional: User,
        amount,
        cvu: str,
        alias: str,
    ) -> ServiceResult[Withdrawal]:
        """
        Record a withdrawal of released funds to a bank account.

        Args:
            professional: Caller; must be a professional
            amount: Amount to withdraw
            cvu: 22-digit bank account key
            alias: Bank account alias, at least 3 characters

        Returns:
            ServiceResult with the new Withdrawal (state PROCESSING)

        Error codes:
            FORBIDDEN: Caller is not a professional
            INVALID_AMOUNT: Outside the withdrawal limits, or more than the
                withdrawable balance
            VALIDATION_ERROR: Malformed CVU or alias
        """
        if not professional.is_professional:
            return ServiceResult.failure(
                "Only professionals can withdraw funds",
                ErrorCode.FORBIDDEN,
            )

        value = parse_amount(amount)
        min_amount = Decimal(settings.MIN_WITHDRAWAL_AMOUNT)
        max_amount = Decimal(settings.MAX_WITHDRAWAL_AMOUNT)
        if value is None or value < min_amount:
            return ServiceResult.failure(
                f"The minimum withdrawal is {min_amount}",
                ErrorCode.INVALID_AMOUNT,
            )
        if value > max_amount:
            return ServiceResult.failure(
                f"The maximum withdrawal is {max_amount}",
                ErrorCode.INVALID_AMOUNT,
            )

        cvu = (cvu or "").strip()
        alias = (alias or "").strip()
        errors = {}
        if not CVU_PATTERN.match(cvu):
            errors["cvu"] = ["The CVU must have exactly 22 digits."]
        if len(alias) < MIN_ALIAS_LENGTH:
            errors["alias"] = [f"The alias must have at least {MIN_ALIAS_LENGTH} characters."]
        if errors:
            return ServiceResult.failure(
                "Complete bank details (CVU and alias) are required",
                ErrorCode.VALIDATION_ERROR,
                errors=errors,
            )

        with cls.atomic():
            # Withdrawals of one professional run one at a time
            User.objects.select_for_update().filter(pk=professional.pk).first()

            withdrawable = FundsService.calculate_withdrawable_funds(professional.pk)
            if value > withdrawable:
                return ServiceResult.failure(
                    "Insufficient funds for the requested withdrawal",
                    ErrorCode.INVALID_AMOUNT,
                )

            withdrawal = Withdrawal.objects.create(
                professional=professional,
                amount=value,
                cvu=cvu,
                alias=alias,
                estimated_arrival=timezone.now()
                + timedelta(days=settings.WITHDRAWAL_ESTIMATED_ARRIVAL_DAYS),
            )

        NotificationService.notify(
            professional,
            NotificationKind.WITHDRAWAL_REQUESTED,
            "Withdrawal in progress",
            body=(
                f"Your withdrawal of {value} to your bank account "
                f"(alias: {alias}) is being processed."
            ),
            data={
                "withdrawal_id": str(withdrawal.id),
                "amount": str(value),
                "bank_details": {
                    "cvu": withdrawal.masked_cvu,
                    "alias": alias,
                    "masked": True,
                },
            },
        )

        cls.get_logger().info(
            f"Withdrawal {withdrawal.id} requested by professional {professional.pk}",
            extra={
                "withdrawal_id": str(withdrawal.id),
                "professional_id": professional.pk,
                "amount": str(value),
            },
        )
        return ServiceResult.success(withdrawal)

    @classmethod
    def list_withdrawals(cls, professional: User) -> ServiceResult[QuerySet]:
        """
        Withdrawals of a professional, newest first.

        Error codes:
            FORBIDDEN: Caller is not a professional
        """
        if not professional.is_professional:
            return ServiceResult.failure(
                "Only professionals have withdrawals",
                ErrorCode.FORBIDDEN,
            )
        return ServiceResult.success(
            Withdrawal.objects.filter(professional=professional).order_by("-created_at")
        )
