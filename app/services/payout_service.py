from typing import Optional


PAYOUT_AMOUNTS = {
    "Part-Time": 150,
    "Full-Time": 300,
}

STATUS_NOT_APPLICABLE = "N/A"
STATUS_AWAITING_HIRE = "Awaiting Hire"
STATUS_READY = "Ready for Payout"
STATUS_PAID = "Paid"

ACTION_CONFIRM_HIRE = "confirm_hire"
ACTION_TRIGGER_PAYOUT = "trigger_payout"


def payout_amount(hire_type: str) -> Optional[int]:
    return PAYOUT_AMOUNTS.get(hire_type)


def derive_hire_status(is_hired: bool) -> str:
    return "Hired" if is_hired else "Pending"


def derive_payout_status(is_hired: bool, is_paid: bool, affiliate_id: Optional[str]) -> str:
    # Only referred clients earn an affiliate payout
    if not affiliate_id:
        return STATUS_NOT_APPLICABLE
    if not is_hired:
        return STATUS_AWAITING_HIRE
    if not is_paid:
        return STATUS_READY
    return STATUS_PAID


def derive_payout_action(is_hired: bool, is_paid: bool, affiliate_id: Optional[str]) -> Optional[str]:
    status = derive_payout_status(is_hired, is_paid, affiliate_id)
    if status == STATUS_AWAITING_HIRE:
        return ACTION_CONFIRM_HIRE
    if status == STATUS_READY:
        return ACTION_TRIGGER_PAYOUT
    return None
