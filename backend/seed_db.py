"""
JobBoard Database Seeder

Creates the demo accounts and postings the web client ships with:
- Admin account
- Two approved employers (Tech Corp, Startup Inc)
- One verified job seeker with a complete profile
- Two active jobs
"""

from datetime import date, timedelta

from jobboard.core.config import settings
from jobboard.core.security import get_password_hash
from jobboard.db.base import Base
from jobboard.db.session import SessionLocal, engine
from jobboard.models import Job, User
from jobboard.services.accounts import ensure_admin
from jobboard.services.jobs import parse_salary_range

ADMIN_EMAIL = "admin@gmail.com"
ADMIN_PASSWORD = "Admin@1791893"


def _employer(username: str, email: str, company_name: str) -> User:
    return User(
        username=username,
        email=email,
        hashed_password=get_password_hash("Employer@123"),
        role="employer",
        company_name=company_name,
        is_approved=True,
        email_verified=True,
        is_active=True,
    )


def _job(employer: User, deadline: date, **fields) -> Job:
    salary_min, salary_max = parse_salary_range(fields["salary"])
    return Job(
        employer_id=employer.id,
        company_name=employer.company_name,
        salary_min=salary_min,
        salary_max=salary_max,
        application_deadline=deadline,
        status="active",
        **fields,
    )


def seed_database():
    """Seed the database with demo data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        existing_employer = db.query(User).filter(User.email == "hr@techcorp.example").first()
        if existing_employer:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        # 1. Admin (settings win over the demo credentials)
        admin_email = settings.ADMIN_EMAIL or ADMIN_EMAIL
        admin_password = settings.ADMIN_PASSWORD or ADMIN_PASSWORD
        ensure_admin(db, admin_email, admin_password)

        # 2. Employers
        tech_corp = _employer("techcorp", "hr@techcorp.example", "Tech Corp")
        startup = _employer("startupinc", "jobs@startup.example", "Startup Inc")
        db.add_all([tech_corp, startup])

        # 3. Job seeker, ready to apply
        seeker = User(
            username="janedoe",
            email="jane.doe@example.com",
            hashed_password=get_password_hash("Seeker@123"),
            role="job_seeker",
            is_approved=True,
            email_verified=True,
            is_active=True,
            legal_name="Jane Doe",
            phone_code="+1",
            phone="5550100",
            city="New York",
            country="USA",
            coding_languages=["TypeScript", "Python"],
        )
        db.add(seeker)
        db.flush()  # Get IDs

        # 4. Jobs
        today = date.today()
        db.add(
            _job(
                tech_corp,
                today + timedelta(days=90),
                title="Frontend Developer",
                description="We are looking for a skilled React developer.",
                salary="$80,000 - $120,000",
                location="New York, NY",
                job_type="full-time",
                skills_required=["React", "TypeScript", "Tailwind"],
                experience="2 years",
                experience_level="mid",
            )
        )
        db.add(
            _job(
                startup,
                today + timedelta(days=30),
                title="Backend Intern",
                description="Join our team to learn Node.js and Databases.",
                salary="$30/hr",
                location="Remote",
                job_type="internship",
                skills_required=["Node.js", "SQL"],
                experience="0 years",
                experience_level="entry",
            )
        )

        # Commit all changes
        db.commit()

        print("✅ Database seeded successfully!")
        print("\n📋 Created Users:")
        print(f"   - {admin_email} [ADMIN]")
        print("   - hr@techcorp.example (password: Employer@123) [EMPLOYER]")
        print("   - jobs@startup.example (password: Employer@123) [EMPLOYER]")
        print("   - jane.doe@example.com (password: Seeker@123) [JOB SEEKER]")
        print("\n💼 Created Jobs:")
        print("   - Frontend Developer @ Tech Corp")
        print("   - Backend Intern @ Startup Inc")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
