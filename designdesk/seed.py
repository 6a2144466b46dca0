"""Seed script — demo users, design requests at every stage, and comments.

Usage:
    python -m designdesk.seed
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete

from designdesk.auth import create_access_token
from designdesk.config import get_settings
from designdesk.database import close_db, get_db_session, init_db
from designdesk.logging_config import configure_logging, get_logger
from designdesk.models import (
    AuditLog,
    Comment,
    DesignRequest,
    Notification,
    RoleChangeRequest,
    User,
)

logger = get_logger(__name__)

NOW = datetime.now(timezone.utc)


def ago(**kwargs) -> datetime:
    return NOW - timedelta(**kwargs)


def ahead(**kwargs) -> datetime:
    return NOW + timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

USERS = [
    {"username": "admin", "email": "admin@drm-system.com", "role": "admin", "last_login": ago(hours=2)},
    {"username": "superadmin", "email": "superadmin@drm-system.com", "role": "admin", "last_login": ago(hours=5)},
    {"username": "sarah.designer", "email": "sarah@drm-system.com", "role": "designer", "last_login": ago(hours=20)},
    {"username": "mike.creative", "email": "mike@drm-system.com", "role": "designer", "last_login": ago(hours=3)},
    {"username": "emma.graphics", "email": "emma@drm-system.com", "role": "designer", "last_login": ago(days=2)},
    {"username": "john.marketing", "email": "john@company.com", "role": "requester", "department": "Marketing", "last_login": ago(hours=1)},
    {"username": "lisa.sales", "email": "lisa@company.com", "role": "requester", "department": "Sales", "last_login": ago(days=1)},
    {"username": "david.product", "email": "david@company.com", "role": "requester", "department": "Product", "last_login": ago(days=3)},
    {"username": "alex.events", "email": "alex@company.com", "role": "requester", "department": "Events", "status": "inactive", "last_login": ago(days=19)},
    {"username": "rachel.hr", "email": "rachel@company.com", "role": "requester", "department": "HR", "last_login": ago(hours=4)},
]

# ---------------------------------------------------------------------------
# Design requests, one or more in every status
# ---------------------------------------------------------------------------

REQUESTS = [
    ("DRM-2026-001", "Q1 Marketing Campaign Banner", "in_design", "high", "john.marketing", "sarah.designer", 7,
     "Hero banner for the Q1 marketing campaign. Required sizes: 1920x600, 1200x628, 300x250."),
    ("DRM-2026-002", "Sales Presentation Template", "submitted", "medium", "lisa.sales", None, 12,
     "Slide template for the sales team with updated brand guidelines and new logo placement."),
    ("DRM-2026-003", "Product Launch Email Graphics", "ready_to_publish", "campaign_critical", "john.marketing", "mike.creative", 2,
     "Email header and footer graphics for the upcoming product launch campaign."),
    ("DRM-2026-004", "Trade Show Booth Design", "in_review", "high", "david.product", "emma.graphics", 24,
     "Booth graphics and signage: backdrop, table covers and standee designs."),
    ("DRM-2026-005", "Social Media Content Pack", "assigned", "medium", "john.marketing", "sarah.designer", 17,
     "Monthly social graphics package including Instagram posts, stories and LinkedIn banners."),
    ("DRM-2026-006", "Employee Handbook Redesign", "draft", "low", "rachel.hr", None, 50,
     "Complete redesign of the employee handbook with new brand colors and improved layout."),
    ("DRM-2026-007", "Website Hero Section Update", "changes_requested", "high", "david.product", "mike.creative", 4,
     "New hero section graphics for the homepage refresh with animated elements."),
    ("DRM-2026-008", "Customer Newsletter Template", "published", "medium", "lisa.sales", "sarah.designer", -3,
     "Monthly newsletter template with modular design for easy content updates."),
    ("DRM-2026-009", "Annual Report 2025", "in_design", "campaign_critical", "rachel.hr", "emma.graphics", 22,
     "Design and layout of the annual report including infographics and data visualizations."),
    ("DRM-2026-010", "Mobile App Onboarding Screens", "submitted", "high", "david.product", None, 10,
     "Onboarding illustration screens for the new mobile app launch."),
    ("DRM-2025-089", "Holiday Campaign Graphics", "archived", "medium", "alex.events", "mike.creative", -30,
     "Holiday-themed marketing materials for the winter campaign."),
    ("DRM-2026-011", "Product Packaging Mockups", "draft", "medium", "david.product", None, 38,
     "3D packaging mockups for the new product line presentation."),
    ("DRM-2026-012", "Webinar Promotional Graphics", "in_review", "high", "john.marketing", "sarah.designer", 6,
     "Banner and social graphics for the upcoming webinar series."),
    ("DRM-2026-013", "Brand Guidelines Document", "assigned", "low", "rachel.hr", "emma.graphics", 52,
     "Updated brand guidelines PDF with new visual identity elements."),
    ("DRM-2026-014", "Video Thumbnail Templates", "completed", "medium", "john.marketing", "mike.creative", 0,
     "Thumbnail templates for the video marketing team."),
]

COMMENTS = [
    ("DRM-2026-001", "john.marketing", "Please make sure to use the new brand colors from the 2026 guidelines."),
    ("DRM-2026-001", "sarah.designer", "Got it! I'll also include the gradient overlay as discussed. First draft coming soon."),
    ("DRM-2026-004", "emma.graphics", "Backdrop and standee are ready for review. Table covers follow the same grid."),
    ("DRM-2026-004", "david.product", "Looks great so far, checking with the events team on the backdrop size."),
    ("DRM-2026-007", "david.product", "The animation feels too busy. Can we slow the transitions and drop the parallax?"),
    ("DRM-2026-007", "mike.creative", "Sure, I'll simplify it and send a new version tomorrow."),
]


async def seed():
    configure_logging(level="INFO", json_format=False)
    await init_db()

    async with get_db_session() as db:
        # Clear existing data
        for model in (Notification, AuditLog, RoleChangeRequest, Comment, DesignRequest, User):
            await db.execute(delete(model))

        users: dict[str, User] = {}
        for ucfg in USERS:
            user = User(**ucfg)
            db.add(user)
            users[user.username] = user
        await db.flush()
        logger.info("users_seeded", count=len(users))

        requests: dict[str, DesignRequest] = {}
        for code, name, status, priority, requester, designer, due_in_days, description in REQUESTS:
            row = DesignRequest(
                code=code,
                name=name,
                description=description,
                status=status,
                priority=priority,
                due_date=ahead(days=due_in_days),
                requester_id=users[requester].id,
                designer_id=users[designer].id if designer else None,
            )
            if status == "published":
                row.published_link = "https://www.figma.com/design/newsletter-final"
                row.published_at = ago(days=4)
            db.add(row)
            requests[code] = row
        await db.flush()
        logger.info("requests_seeded", count=len(requests))

        for code, author, content in COMMENTS:
            db.add(Comment(request_id=requests[code].id, author_id=users[author].id, content=content))

        db.add(RoleChangeRequest(
            user_id=users["lisa.sales"].id,
            from_role="requester",
            requested_role="designer",
            reason="I've been doing design work for the sales team and would like to take requests.",
            status="pending",
        ))

        await db.commit()
        logger.info("seed_complete", users=len(users), requests=len(requests), comments=len(COMMENTS))

        print("\n" + "=" * 60)
        print("SEED DATA CREATED SUCCESSFULLY")
        print("=" * 60)
        print(f"\nUsers: {len(users)}")
        print(f"Requests: {len(requests)}")
        print(f"Comments: {len(COMMENTS)}")
        if get_settings().jwt_secret_key:
            print("\nDemo access tokens (60 min):")
            for username, user in users.items():
                if user.status == "active":
                    print(f"  {username} ({user.role}): {create_access_token(str(user.id))}")
        print("=" * 60)

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
