from datetime import date, timedelta

from dotenv import load_dotenv

from taskboard import comment_store, invitation_store, task_store, user_store
from taskboard.db import get_db_session, init_db
from taskboard.models import Priority, Role, TaskStatus, User


def main() -> None:
    load_dotenv()
    init_db()

    with get_db_session() as db:
        if db.query(User).count():
            print("Database already has users; skipping seed.")
            return

        admin = user_store.create_user(
            db,
            email="admin@example.com",
            password="admin*123",
            full_name="Mallika Admin",
            role=Role.ADMIN,
        )

        employees = [
            user_store.create_user(db, email=email, password=password, full_name=name)
            for name, email, password in [
                ("Govind Krishnan", "govind@example.com", "govind*123"),
                ("Kailas S S", "kailas@example.com", "kailas*123"),
                ("Mukundan V S", "mukundan@example.com", "mukundan*123"),
            ]
        ]

        tasks = [
            ("Prepare Q1 report", Priority.HIGH, 2, 0),
            ("Review pending claim documents", Priority.MEDIUM, 4, 1),
            ("Update dashboard status badges", Priority.LOW, 6, 2),
            ("Set up CI alerts for failed deployments", Priority.MEDIUM, 8, None),
        ]

        created = []
        for title, priority, days, employee_index in tasks:
            created.append(task_store.create_task(
                db,
                title=title,
                description=f"{title}.",
                priority=priority,
                deadline=date.today() + timedelta(days=days),
                assignee_id=employees[employee_index].id if employee_index is not None else None,
                creator_id=admin.id,
            ))

        task_store.update_status(db, created[1].id, TaskStatus.IN_PROGRESS, employees[1].id)
        comment_store.add_comment(db, created[1].id, employees[1].id, "Started on this today.")
        comment_store.add_comment(db, created[1].id, admin.id, "Thanks, ping me if blocked.")

        invitation_store.invite(db, "bob@example.com", admin.id, Role.EMPLOYEE)

    print("Seeded 1 admin, 3 employees, 4 tasks, 2 comments and 1 pending invitation.")


if __name__ == "__main__":
    main()
