import random

import pytest

from conftest import OTHER_ID, STUDENT_ID
from studybuddy.models import ActivityReport, LearnerSkill, StudyActivity
from studybuddy.services import StudyBuddyService, update_proficiency


def add_activity(db, skill_code="MATH.G4.FRACTIONS", difficulty=0.5, title="Sharing ugali", locale="ke"):
    activity = StudyActivity(
        title=title,
        skill_code=skill_code,
        difficulty=difficulty,
        locale=locale,
        estimated_time_sec=90,
        content={"question": "Share 3 pieces among 4 friends"},
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def report(client, headers, activity_id, score=0.8, time_spent_sec=120):
    return client.post(
        "/studybuddy/report",
        json={"activity_id": activity_id, "score": score, "time_spent_sec": time_spent_sec},
        headers=headers,
    )


@pytest.mark.parametrize("current,score,difficulty,expected", [
    (0.5, 0.8, 0.5, 0.59),
    (0.5, 0.0, 0.9, 0.23),
    (0.95, 1.0, 0.0, 1.0),
    (0.05, 0.0, 1.0, 0.0),
])
def test_update_proficiency(current, score, difficulty, expected):
    assert update_proficiency(current, score, difficulty) == pytest.approx(expected)


def test_first_report_starts_from_default_proficiency(client, db, student_headers):
    activity = add_activity(db)

    response = report(client, student_headers, activity.id, score=0.8)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["updated_skills"]["old_proficiency"] == pytest.approx(0.5)
    assert body["updated_skills"]["new_proficiency"] == pytest.approx(0.59)
    skill = db.query(LearnerSkill).one()
    assert skill.user_id == STUDENT_ID
    assert skill.proficiency == pytest.approx(0.59)
    assert skill.last_practiced_at is not None
    assert db.query(ActivityReport).count() == 1


def test_second_report_updates_same_skill(client, db, student_headers):
    activity = add_activity(db)
    report(client, student_headers, activity.id, score=0.8)

    body = report(client, student_headers, activity.id, score=0.2).json()

    assert body["updated_skills"]["old_proficiency"] == pytest.approx(0.59)
    assert body["updated_skills"]["new_proficiency"] == pytest.approx(0.5)
    assert db.query(LearnerSkill).count() == 1
    assert db.query(ActivityReport).count() == 2


def test_report_recommends_activity_near_weakest_skill(client, db, student_headers):
    activity = add_activity(db, difficulty=0.5)
    harder = add_activity(db, difficulty=0.65, title="Fractions at the market")
    add_activity(db, difficulty=0.95, title="Too hard")
    add_activity(db, difficulty=0.6, title="Foreign", locale="ug")

    body = report(client, student_headers, activity.id, score=0.5).json()

    assert body["next_activity"]["activity_id"] in {activity.id, harder.id}


def test_report_unknown_activity(client, db, student_headers):
    response = report(client, student_headers, "missing")
    assert response.status_code == 404
    assert db.query(ActivityReport).count() == 0


@pytest.mark.parametrize("score,time_spent", [(1.5, 60), (-0.1, 60), (0.5, 0)])
def test_report_rejects_out_of_range_values(client, db, student_headers, score, time_spent):
    activity = add_activity(db)
    response = report(client, student_headers, activity.id, score=score, time_spent_sec=time_spent)
    assert response.status_code == 400


def test_report_requires_authentication(client, db):
    activity = add_activity(db)
    response = client.post("/studybuddy/report", json={"activity_id": activity.id, "score": 1, "time_spent_sec": 5})
    assert response.status_code == 401


def test_recommend_next_picks_from_weakest_skill(db):
    reading = add_activity(db, skill_code="ENG.G4.READING", difficulty=0.3)
    add_activity(db, skill_code="MATH.G4.FRACTIONS", difficulty=0.3)
    db.add_all([
        LearnerSkill(user_id=STUDENT_ID, skill_code="MATH.G4.FRACTIONS", proficiency=0.8),
        LearnerSkill(user_id=STUDENT_ID, skill_code="ENG.G4.READING", proficiency=0.3),
    ])
    db.commit()

    recommended = StudyBuddyService.recommend_next(STUDENT_ID, db, random.Random(7))

    assert recommended.activity_id == reading.id


def test_recommend_next_without_skills(db):
    add_activity(db)
    assert StudyBuddyService.recommend_next(STUDENT_ID, db) is None


def test_next_falls_back_to_easiest_activity(client, db, student_headers):
    add_activity(db, difficulty=0.6, title="Harder")
    easiest = add_activity(db, difficulty=0.2, title="Easiest")

    response = client.get("/studybuddy/next", headers=student_headers)

    assert response.status_code == 200
    assert response.json()["activity_id"] == easiest.id


def test_next_without_activities(client, student_headers):
    response = client.get("/studybuddy/next", headers=student_headers)
    assert response.status_code == 404


def test_skills_are_per_user(client, db, student_headers):
    db.add_all([
        LearnerSkill(user_id=STUDENT_ID, skill_code="SCI.G5.PLANTS", proficiency=0.4),
        LearnerSkill(user_id=STUDENT_ID, skill_code="ENG.G4.READING", proficiency=0.7),
        LearnerSkill(user_id=OTHER_ID, skill_code="MATH.G4.FRACTIONS", proficiency=0.9),
    ])
    db.commit()

    response = client.get("/studybuddy/skills", headers=student_headers)

    assert response.status_code == 200
    assert [s["skill_code"] for s in response.json()] == ["ENG.G4.READING", "SCI.G5.PLANTS"]


def test_class_proficiency_for_staff(client, db, student_headers, teacher_headers, admin_headers):
    db.add_all([
        LearnerSkill(user_id=STUDENT_ID, skill_code="MATH.G4.FRACTIONS", proficiency=0.4),
        LearnerSkill(user_id=OTHER_ID, skill_code="MATH.G4.FRACTIONS", proficiency=0.8),
    ])
    db.commit()

    assert client.get("/admin/class-proficiency", headers=student_headers).status_code == 403
    for headers in (teacher_headers, admin_headers):
        response = client.get("/admin/class-proficiency", headers=headers)
        assert response.status_code == 200
        summary = response.json()[0]
        assert summary["skill_code"] == "MATH.G4.FRACTIONS"
        assert summary["learner_count"] == 2
        assert summary["avg_proficiency"] == pytest.approx(0.6)
        assert summary["min_proficiency"] == pytest.approx(0.4)
        assert summary["max_proficiency"] == pytest.approx(0.8)
