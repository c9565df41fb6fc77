"""Walk the lesson list of a running server and show what unlocks as lessons are completed."""
import sys

import httpx

BASE = "http://localhost:8000/api/v1"


def main():
    c = httpx.Client(timeout=15)

    r = c.get(f"{BASE}/lessons")
    if r.status_code != 200:
        print(f"Lesson list failed: {r.status_code} {r.text[:200]}")
        sys.exit(1)
    lessons = r.json()["lessons"]
    print(f"=== {len(lessons)} lesson(s) ===\n")

    completed = []
    for lesson in lessons:
        r = c.post(f"{BASE}/lessons/unlock-status", json={"completed_lesson_ids": completed})
        statuses = r.json()["statuses"]
        state = "open" if statuses.get(lesson["id"]) else "LOCKED"
        requires = ", ".join(lesson["prerequisites"]) or "-"
        print(f"  [{state:6}] {lesson['id']:16} {lesson['title']} (requires {requires})")
        completed.append(lesson["id"])

    # Keyword highlighting in the first lesson
    if lessons:
        r = c.get(f"{BASE}/lessons/{lessons[0]['id']}")
        detail = r.json()
        print(f"\nKeywords in {detail['id']}:")
        for segment in detail["segments"]:
            terms = sorted({span["term"] for span in segment["keywords"]})
            print(f"  Card {segment['order']}: {', '.join(terms) or '(none)'}")


if __name__ == "__main__":
    main()
