"""
Client store snapshot.

The client-only deployment keeps ``{users, jobs, applications, currentUser}``
under a single namespaced storage key, in the ``{"state": ..., "version": n}``
envelope the web client persists. This module converts between that snapshot
and the database so both modes share one entity model.

Snapshots never carry plaintext passwords. Older snapshots written by the demo
client do; their passwords are hashed on import before anything is stored.
"""

import json
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from sqlalchemy.orm import Session

from jobboard.core.config import settings
from jobboard.core.errors import ConflictError, ValidationError
from jobboard.core.security import get_password_hash, utcnow
from jobboard.models import Application, Job, User
from jobboard.models.application import APPLICATION_STATUSES
from jobboard.models.job import JOB_STATUSES, JOB_TYPES
from jobboard.models.user import PROFILE_FIELDS, ROLES
from jobboard.services.entities import commit_or_conflict, normalize_email, unique_username
from jobboard.services.jobs import parse_salary_range

logger = logging.getLogger("jobboard.snapshot")

# Field names the web client uses where plain camelCase would differ
CLIENT_NAMES = {
    "linkedin": "linkedIn",
    "hackerrank": "hackerRank",
    "job_type": "type",
    "application_deadline": "lastDate",
}


def _client_name(field: str) -> str:
    if field in CLIENT_NAMES:
        return CLIENT_NAMES[field]
    head, *rest = field.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


# ============== Export ==============


def user_to_client(user: User, include_credentials: bool = True) -> dict:
    record = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "isApproved": user.is_approved,
        "emailVerified": user.email_verified,
        "isActive": user.is_active,
        "lastLogin": _iso(user.last_login),
        "createdAt": _iso(user.created_at),
    }
    for field in PROFILE_FIELDS:
        record[_client_name(field)] = getattr(user, field)
    if include_credentials:
        record["passwordHash"] = user.hashed_password
    return record


def job_to_client(job: Job) -> dict:
    return {
        "id": job.id,
        "employerId": job.employer_id,
        "title": job.title,
        "companyName": job.company_name,
        "description": job.description,
        "salary": job.salary,
        "salaryMin": job.salary_min,
        "salaryMax": job.salary_max,
        "location": job.location,
        "type": job.job_type,
        "skillsRequired": list(job.skills_required or []),
        "experience": job.experience,
        "experienceLevel": job.experience_level,
        "lastDate": _iso(job.application_deadline),
        "createdAt": _iso(job.created_at),
        "status": job.status,
    }


def application_to_client(application: Application) -> dict:
    return {
        "id": application.id,
        "jobId": application.job_id,
        "jobSeekerId": application.job_seeker_id,
        "status": application.status,
        "appliedAt": _iso(application.applied_at),
    }


def export_state(db: Session, current_user: Optional[User] = None) -> dict:
    """The ``state`` part of a snapshot."""
    return {
        "users": [user_to_client(u) for u in db.query(User).order_by(User.id).all()],
        "jobs": [job_to_client(j) for j in db.query(Job).order_by(Job.id).all()],
        "applications": [
            application_to_client(a) for a in db.query(Application).order_by(Application.id).all()
        ],
        "currentUser": (
            user_to_client(current_user, include_credentials=False) if current_user else None
        ),
    }


def export_snapshot(
    db: Session,
    current_user: Optional[User] = None,
    version: int = 0,
    key: Optional[str] = None,
) -> dict:
    """Full snapshot keyed under the namespaced storage key."""
    return {
        key or settings.SNAPSHOT_STORAGE_KEY: {
            "state": export_state(db, current_user),
            "version": version,
        }
    }


# ============== Import ==============


def _user_from_client(db: Session, record: dict, index: int, taken: set[str]) -> User:
    email = normalize_email(record.get("email", ""))
    role = record.get("role")
    if not email:
        raise ValidationError({f"users[{index}].email": "Email is required"})
    if role not in ROLES:
        raise ValidationError({f"users[{index}].role": "Invalid role"})

    legacy = "password" in record and "passwordHash" not in record
    if legacy:
        hashed = get_password_hash(str(record["password"]))
    elif record.get("passwordHash"):
        hashed = record["passwordHash"]
    else:
        raise ValidationError({f"users[{index}].password": "User has no credentials"})

    user = User(
        username=unique_username(
            db, record.get("username") or email.split("@")[0], taken
        ),
        email=email,
        hashed_password=hashed,
        role=role,
        is_approved=bool(record.get("isApproved", role != "employer")),
        # The demo client had no verification step
        email_verified=bool(record.get("emailVerified", legacy)),
        is_active=bool(record.get("isActive", True)),
        last_login=_parse_datetime(record.get("lastLogin")),
        created_at=_parse_datetime(record.get("createdAt")) or utcnow(),
    )
    for field in PROFILE_FIELDS:
        name = _client_name(field)
        if name in record:
            setattr(user, field, record[name])
    return user


def _job_from_client(record: dict, employer: User) -> Job:
    job_type = (record.get("type") or "").lower()
    status = record.get("status", "active")
    return Job(
        employer_id=employer.id,
        title=record.get("title", ""),
        description=record.get("description", ""),
        company_name=record.get("companyName") or employer.company_name or "",
        salary=str(record.get("salary", "")),
        salary_min=record.get("salaryMin"),
        salary_max=record.get("salaryMax"),
        location=record.get("location", ""),
        job_type=job_type if job_type in JOB_TYPES else "full-time",
        skills_required=list(record.get("skillsRequired") or []),
        experience=record.get("experience", ""),
        experience_level=record.get("experienceLevel"),
        application_deadline=_parse_date(record.get("lastDate")),
        status=status if status in JOB_STATUSES else "active",
        created_at=_parse_datetime(record.get("createdAt")) or utcnow(),
    )


def import_state(db: Session, state: dict) -> dict[str, int]:
    """
    Load a snapshot ``state`` into an empty database.

    Client ids are remapped to database ids. Jobs whose employer is not in
    the snapshot, and applications whose job or seeker is missing, are
    skipped. Returns the number of records imported per collection.
    """
    if db.query(User).first() is not None:
        raise ConflictError("Snapshots can only be imported into an empty database")

    user_ids: dict[Any, User] = {}
    taken: set[str] = set()
    emails: set[str] = set()
    for index, record in enumerate(state.get("users", [])):
        user = _user_from_client(db, record, index, taken)
        if user.email in emails:
            raise ConflictError(f"Snapshot contains more than one user with email {user.email}")
        emails.add(user.email)
        user_ids[record.get("id")] = user
    # Nothing is added to the session until every user record is valid
    db.add_all(user_ids.values())
    db.flush()

    job_ids: dict[Any, Job] = {}
    for record in state.get("jobs", []):
        employer = user_ids.get(record.get("employerId"))
        if employer is None or employer.role != "employer":
            logger.warning("Skipping job %r: employer not in snapshot", record.get("id"))
            continue
        job = _job_from_client(record, employer)
        if job.salary_min is None and job.salary_max is None:
            job.salary_min, job.salary_max = parse_salary_range(job.salary)
        db.add(job)
        job_ids[record.get("id")] = job
    db.flush()

    imported_applications = 0
    for record in state.get("applications", []):
        job = job_ids.get(record.get("jobId"))
        seeker = user_ids.get(record.get("jobSeekerId"))
        status = record.get("status", "pending")
        if job is None or seeker is None or status not in APPLICATION_STATUSES:
            logger.warning("Skipping application %r", record.get("id"))
            continue
        db.add(
            Application(
                job_id=job.id,
                job_seeker_id=seeker.id,
                status=status,
                applied_at=_parse_datetime(record.get("appliedAt")) or utcnow(),
            )
        )
        imported_applications += 1

    commit_or_conflict(db, "Snapshot contains duplicate users or applications")

    counts = {
        "users": len(user_ids),
        "jobs": len(job_ids),
        "applications": imported_applications,
    }
    logger.info("Imported snapshot: %s", counts)
    return counts


def import_snapshot(db: Session, snapshot: dict, key: Optional[str] = None) -> dict[str, int]:
    key = key or settings.SNAPSHOT_STORAGE_KEY
    envelope = snapshot.get(key)
    if not isinstance(envelope, dict) or not isinstance(envelope.get("state"), dict):
        raise ValidationError({key: "Snapshot has no state under this key"})
    return import_state(db, envelope["state"])


# ============== Snapshot file ==============


class SnapshotFile:
    """
    A JSON file holding snapshots under namespaced keys.

    The file is re-read before every write. A write is refused when the
    stored ``version`` moved since this object last read it, so two writers
    cannot silently overwrite each other.
    """

    def __init__(self, path, key: Optional[str] = None):
        self.path = Path(path)
        self.key = key or settings.SNAPSHOT_STORAGE_KEY
        self._version: Optional[int] = None

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def read(self) -> Optional[dict]:
        """Return the envelope under this key and remember its version."""
        envelope = self._read_all().get(self.key)
        self._version = envelope.get("version", 0) if envelope else None
        return envelope

    def write(self, state: dict) -> int:
        """Store ``state`` as the next version and return that version."""
        data = self._read_all()
        on_disk = data.get(self.key)
        on_disk_version = on_disk.get("version", 0) if on_disk else None
        if on_disk_version != self._version:
            raise ConflictError("Snapshot was changed by another writer; reload and retry")

        version = (on_disk_version or 0) + 1
        data[self.key] = {"state": state, "version": version}

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        self._version = version
        return version

    def save_from_db(self, db: Session, current_user: Optional[User] = None) -> int:
        self.read()
        return self.write(export_state(db, current_user))

    def load_into_db(self, db: Session) -> dict[str, int]:
        envelope = self.read()
        if envelope is None:
            raise ValidationError({self.key: "Snapshot file has no state under this key"})
        return import_state(db, envelope.get("state", {}))
