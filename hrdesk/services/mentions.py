"""@mention parsing for task comments."""
import re
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hrdesk.models import Employee
from hrdesk.services.employees import normalize_email

MENTION_PATTERN = re.compile(r"@(\w+)")


def extract_mentions(content: str) -> List[str]:
    """Return the distinct lowercased mention tokens in ``content``, in order."""
    seen = []
    for match in MENTION_PATTERN.finditer(content or ""):
        token = match.group(1).lower()
        if token not in seen:
            seen.append(token)
    return seen


def resolve_mentioned_employees(
    db: Session,
    content: str,
    explicit_emails: Optional[Iterable[str]] = None,
) -> List[Employee]:
    """Find the employees a comment mentions.

    A non-empty ``explicit_emails`` list (picked from suggestions by the
    client) is authoritative. Otherwise each ``@token`` matches any employee
    whose name or email contains it, case-insensitively.
    """
    emails = {normalize_email(email) for email in explicit_emails or [] if email and email.strip()}
    if emails:
        return db.query(Employee).filter(Employee.email.in_(emails)).order_by(Employee.name).all()

    tokens = extract_mentions(content)
    if not tokens:
        return []

    clauses = []
    for token in tokens:
        clauses.append(func.lower(Employee.name).contains(token, autoescape=True))
        clauses.append(func.lower(Employee.email).contains(token, autoescape=True))
    return db.query(Employee).filter(or_(*clauses)).order_by(Employee.name).all()
