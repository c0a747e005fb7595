"""
Create (or promote) a portal administrator.

    python -m scripts.setup_admin admin@example.com --company "AltaVista"

The admin flag lives in the identity provider's user metadata; a matching
``admin`` profile is written so the account passes the status gate.
"""
import argparse
import logging
from datetime import datetime

from pricing_portal.core.logging_config import configure_logging
from pricing_portal.database.connection import Base, SessionLocal, engine
from pricing_portal.enums.statuses import AccountStatus, UserRole
from pricing_portal.integrations.identity_provider import (
    build_identity_provider,
    password_setup_redirect,
)
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.services.registration_service import throwaway_password

logger = logging.getLogger("setup_admin")


def setup_admin(email: str, company_name: str = None, send_email: bool = True) -> str:
    email = email.strip().lower()
    identity = build_identity_provider()
    try:
        account = identity.find_user_by_email(email)
        metadata = {"is_admin": True, "status": AccountStatus.approved.value}
        if company_name:
            metadata["company_name"] = company_name

        if account is None:
            account = identity.create_user(
                email=email,
                password=throwaway_password(),
                email_confirm=True,
                user_metadata=metadata,
            )
        else:
            merged = dict(account.get("user_metadata") or {})
            merged.update(metadata)
            identity.update_user_metadata(account["id"], merged)
        user_id = account["id"]

        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
            if profile is None:
                profile = UserProfile(id=user_id, email=email, role=UserRole.admin.value)
                db.add(profile)
            elif profile.role != UserRole.admin.value:
                logger.warning("profile %s keeps role %s; admin rights come from the token", user_id, profile.role)
            profile.company_name = company_name or profile.company_name
            profile.status = AccountStatus.approved.value
            profile.approved_at = profile.approved_at or datetime.utcnow()
            db.commit()
        finally:
            db.close()

        if send_email:
            identity.send_password_setup_email(email, redirect_to=password_setup_redirect())
    finally:
        identity.close()

    logger.info("admin ready: %s (%s)", email, user_id)
    return user_id


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create or promote a portal administrator")
    parser.add_argument("email")
    parser.add_argument("--company", dest="company_name", default=None)
    parser.add_argument("--no-email", dest="send_email", action="store_false",
                        help="skip the password-setup email")
    args = parser.parse_args(argv)

    configure_logging()
    setup_admin(args.email, args.company_name, args.send_email)


if __name__ == "__main__":
    main()
