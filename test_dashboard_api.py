from fastapi import status

from scholarship.db_applications import ApplicationStatus, create_application, review_application

from conftest import make_batch, make_user


def test_dashboard_stats(client, admin, admin_headers, student, open_batch):
    make_batch("Upcoming", offset_start=10, offset_end=40)
    bob = make_user("bob", student_id="20260002")
    first = create_application(student["id"], open_batch["id"], [{"score": 5}])
    create_application(bob["id"], open_batch["id"], [{"score": 1}])
    review_application(first["id"], ApplicationStatus.APPROVED, "Well done", admin["id"])

    resp = client.get("/api/admin/dashboard/stats", headers=admin_headers)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {
        "total_applications": 2,
        "pending_applications": 1,
        "approved_applications": 1,
        "rejected_applications": 0,
        "total_batches": 2,
        "active_batches": 1,
        "total_users": 3,
    }


def test_recent_applications(client, admin_headers, student, open_batch):
    nameless = make_user("noname", student_id="20260009")
    create_application(student["id"], open_batch["id"], [{"score": 5}, {"score": 2}])
    create_application(nameless["id"], open_batch["id"], [])

    resp = client.get("/api/admin/dashboard/recent-applications", params={"limit": 1}, headers=admin_headers)
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert len(body) == 1
    assert body[0]["applicant_name"] == "noname"
    assert body[0]["batch_name"] == open_batch["name"]

    everything = client.get("/api/admin/dashboard/recent-applications", headers=admin_headers).json()
    assert [a["total_score"] for a in everything] == [0, 7]
    assert everything[1]["applicant_name"] == "Alice Chen"


def test_dashboard_requires_admin(client, student_headers):
    resp = client.get("/api/admin/dashboard/stats", headers=student_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN
