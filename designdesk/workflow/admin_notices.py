"""Notification intents for administrative user-management actions.

These flows sit beside the request workflow and reuse its
`NotificationIntent` contract: each action tells exactly one user.
"""

from uuid import UUID

from designdesk.workflow.effects import NotificationIntent, NotificationKind


def role_changed(user_id: UUID, admin_id: UUID, previous_role: str, new_role: str) -> NotificationIntent:
    return NotificationIntent(
        recipient_id=user_id,
        kind=NotificationKind.status_change,
        title="Role Changed",
        message=f"Your role has been changed from {previous_role} to {new_role} by an administrator.",
        from_user_id=admin_id,
    )


def account_status_changed(user_id: UUID, admin_id: UUID, active: bool) -> NotificationIntent:
    if active:
        title = "Account Activated"
        message = "Your account has been activated by an administrator."
    else:
        title = "Account Deactivated"
        message = "Your account has been deactivated by an administrator. Please contact support."
    return NotificationIntent(
        recipient_id=user_id,
        kind=NotificationKind.status_change,
        title=title,
        message=message,
        from_user_id=admin_id,
    )


def role_request_reviewed(
    user_id: UUID,
    admin_id: UUID,
    requested_role: str,
    approved: bool,
    review_note: str | None = None,
) -> NotificationIntent:
    """Tell a user the outcome of their role-change request."""
    if approved:
        message = (
            f"Your role has been changed to {requested_role}. "
            "Please log out and log back in for changes to take effect."
        )
    else:
        message = f"Your request to change role to {requested_role} was rejected."
        if review_note:
            message += f" Reason: {review_note}"
    return NotificationIntent(
        recipient_id=user_id,
        kind=NotificationKind.status_change,
        title=f"Role Change {'Approved' if approved else 'Rejected'}",
        message=message,
        from_user_id=admin_id,
    )


def role_change_requested(
    admin_ids: list[UUID],
    user_id: UUID,
    username: str,
    current_role: str,
    requested_role: str,
) -> list[NotificationIntent]:
    """One intent per admin for a newly submitted role-change request."""
    return [
        NotificationIntent(
            recipient_id=admin_id,
            kind=NotificationKind.status_change,
            title="Role Change Request",
            message=f"{username} requested to change role from {current_role} to {requested_role}",
            from_user_id=user_id,
        )
        for admin_id in admin_ids
    ]
