#!/usr/bin/env python3
"""Sample consent exchange for end-to-end validation.

Seeds an in-memory database with one client, one project and two
freelancers, then walks through the reciprocal-like flow without the HTTP
layer:

1. The client approves freelancer F7 on project P3 (no match yet)
2. F7 approves P3 (exactly one match is created)
3. F7 repeats the approval (still exactly one match)
4. The client rejects the second freelancer, who then drops out of ranking

Usage:
    python scripts/run_sample_exchange.py
    python scripts/run_sample_exchange.py --database sqlite:////tmp/exchange.db --log-level DEBUG
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.domain.models import Project, User, UserRole
from app.logging.config import configure_logging
from app.matching import MatchingEngine, Side, describe_project
from app.persistence import (
    MatchRepository,
    ProjectRepository,
    UserRepository,
    close_database,
    get_session,
    init_database,
)


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_outcome(step: str, outcome):
    match_id = outcome.match.id if outcome.match else "-"
    print(
        f"  {step:<38} state={outcome.state.value:<22} "
        f"created={str(outcome.match_created):<5} match={match_id}"
    )


def seed(session):
    users = UserRepository(session)
    projects = ProjectRepository(session)

    client = users.create(User(id="C1", role=UserRole.CLIENT, name="Acme Corp", company="Acme"))
    f7 = users.create(
        User(id="F7", role=UserRole.FREELANCER, name="Grace", skills=["python", "sql"], hourly_rate=60)
    )
    f8 = users.create(
        User(id="F8", role=UserRole.FREELANCER, name="Linus", skills=["python", "c"], hourly_rate=90)
    )
    project = projects.create(
        Project(id="P3", client_id=client.id, title="Data API", skills=["python", "sql"], budget=75)
    )
    return client, f7, f8, project


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the sample consent exchange")
    parser.add_argument(
        "--database",
        default="sqlite:///:memory:",
        help="Database URL (default: in-memory SQLite)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )
    args = parser.parse_args()

    configure_logging(level=args.log_level, format_type="key-value", environment="local")
    init_database(args.database, reset=True)

    try:
        print_header("Seeding")
        with get_session() as session:
            client, f7, f8, project = seed(session)
        print(f"  client={client.id} freelancers={f7.id},{f8.id} project={project.id}")

        print_header("Consent exchange")
        steps = [
            ("client approves F7 on P3", "like", Side.CLIENT, client.id, f7.id),
            ("F7 approves P3", "like", Side.FREELANCER, f7.id, f7.id),
            ("F7 approves P3 again", "like", Side.FREELANCER, f7.id, f7.id),
            ("client rejects F8 on P3", "dislike", Side.CLIENT, client.id, f8.id),
        ]
        for label, action, side, actor_id, freelancer_id in steps:
            with get_session() as session:
                engine = MatchingEngine(session)
                outcome = getattr(engine, action)(side, actor_id, freelancer_id, project.id)
            print_outcome(label, outcome)

        print_header("Result")
        with get_session() as session:
            engine = MatchingEngine(session)
            ledger = MatchRepository(session)
            match_count = ledger.count_for_pair(f7.id, project.id)
            candidates = [user.id for user in engine.candidates(project.id)]
            print(f"  {describe_project(engine.projects.get(project.id))}")

        print(f"  matches for ({f7.id}, {project.id}): {match_count}")
        print(f"  candidates for {project.id}: {', '.join(candidates) or '(none)'}")

        ok = match_count == 1 and f8.id not in candidates
        print("\n  " + ("✓ exchange behaved as expected" if ok else "✗ unexpected result"))
        return 0 if ok else 1

    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
