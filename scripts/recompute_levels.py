"""
Re-derive stored levels after the level table changed.

This script:
1. Loads the active level/reward tables (GAMIFICATION_CONFIG_FILE or built-ins)
2. Reads every user's "engagement" blob
3. Re-derives level/levelTitle from totalXP and rewrites changed blobs

XP, streaks and the weekly window are never touched. SAFE to run multiple times.
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from lernpfad.core.config import ENGAGEMENT_KEY, GAMIFICATION_CONFIG_FILE
from lernpfad.db.session import SessionLocal
from lernpfad.engagement.levels import load_config
from lernpfad.engagement.service import save_engagement
from lernpfad.engagement.tracker import EngagementState
from lernpfad.state.store import SqlStateStore, iter_states


def recompute_levels(dry_run: bool = False) -> int:
    """Returns the number of users whose level changed."""
    config = load_config(GAMIFICATION_CONFIG_FILE)
    db = SessionLocal()
    changed = 0

    try:
        rows = list(iter_states(db, ENGAGEMENT_KEY))
        print(f"Found {len(rows)} engagement states to check", flush=True)

        for user, data in rows:
            stored_level = (data or {}).get("level")
            state = EngagementState.from_dict(data, config)
            if stored_level == state.level and (data or {}).get("levelTitle") == state.level_title:
                continue

            changed += 1
            print(f"  user {user.id}: level {stored_level} -> {state.level} "
                  f"'{state.level_title}' (totalXP={state.total_xp})", flush=True)
            if not dry_run:
                save_engagement(SqlStateStore(db, user.id), state)

        print(f"\n✅ Recompute complete: {changed} changed{' (dry run)' if dry_run else ''}", flush=True)
        return changed

    except Exception as e:
        db.rollback()
        print(f"❌ Error during recompute: {e}", flush=True)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    recompute_levels(dry_run="--dry-run" in sys.argv[1:])
