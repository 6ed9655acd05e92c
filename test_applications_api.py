from fastapi import status

from scholarship.db_applications import ApplicationStatus, get_application_by_id
from scholarship.db_batches import BatchStatus, set_batch_status

from conftest import auth_headers, make_batch, make_user


ITEMS = [
    {"type": "competition", "level": "national", "name": "ACM-ICPC", "score": 10},
    {"type": "volunteer", "level": "school", "name": "Library helper", "score": "3"},
]


def _submit(client, headers, batch_id, items=ITEMS):
    return client.post(
        "/api/applications",
        json={"batch_id": batch_id, "scholarship_items": items},
        headers=headers,
    )


def test_submit_application_to_open_batch(client, student, student_headers, open_batch):
    resp = _submit(client, student_headers, open_batch["id"])
    assert resp.status_code == status.HTTP_201_CREATED
    body = resp.json()
    assert body["status"] == ApplicationStatus.PENDING
    assert body["user_id"] == student["id"]
    assert body["total_score"] == 13
    assert body["editable"] is True
    assert body["batch"]["name"] == open_batch["name"]
    assert body["applicant"]["student_id"] == "20260001"
    assert body["scholarship_items"][0]["name"] == "ACM-ICPC"


def test_extra_item_fields_are_preserved(client, student_headers, open_batch):
    items = [{"name": "Paper", "score": 4, "evidence": "doi:10.1000/xyz"}]
    resp = _submit(client, student_headers, open_batch["id"], items)
    assert resp.status_code == status.HTTP_201_CREATED
    assert resp.json()["scholarship_items"][0]["evidence"] == "doi:10.1000/xyz"


def test_submit_twice_to_same_batch_is_refused(client, student_headers, open_batch):
    assert _submit(client, student_headers, open_batch["id"]).status_code == status.HTTP_201_CREATED

    resp = _submit(client, student_headers, open_batch["id"])
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert "already applied" in resp.json()["detail"]


def test_submit_to_batch_outside_window_is_refused(client, student_headers):
    upcoming = make_batch("Upcoming", offset_start=10, offset_end=40)
    ended = make_batch("Ended", offset_start=-40, offset_end=-10)

    assert _submit(client, student_headers, upcoming["id"]).status_code == status.HTTP_400_BAD_REQUEST
    assert _submit(client, student_headers, ended["id"]).status_code == status.HTTP_400_BAD_REQUEST


def test_submit_to_missing_batch_returns_404(client, student_headers):
    assert _submit(client, student_headers, 9999).status_code == status.HTTP_404_NOT_FOUND


def test_manual_close_blocks_submissions(client, student_headers, open_batch):
    set_batch_status(open_batch["id"], BatchStatus.ENDED)
    assert _submit(client, student_headers, open_batch["id"]).status_code == status.HTTP_400_BAD_REQUEST


def test_my_applications_only_lists_own(client, student_headers, open_batch):
    other = make_user("bob", student_id="20260002")
    _submit(client, student_headers, open_batch["id"])
    _submit(client, auth_headers(other), open_batch["id"])

    resp = client.get("/api/applications/my", headers=student_headers)
    assert resp.status_code == status.HTTP_200_OK
    assert len(resp.json()) == 1
    assert resp.json()[0]["applicant"]["username"] == "alice"


def test_application_details_hidden_from_other_students(client, student_headers, admin_headers, open_batch):
    application = _submit(client, student_headers, open_batch["id"]).json()
    other = make_user("bob", student_id="20260002")

    assert client.get(f"/api/applications/{application['id']}", headers=student_headers).status_code == 200
    assert client.get(f"/api/applications/{application['id']}", headers=admin_headers).status_code == 200
    resp = client.get(f"/api/applications/{application['id']}", headers=auth_headers(other))
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_admin_list_filters(client, admin, admin_headers, student_headers, open_batch):
    second_batch = make_batch("Second")
    bob = make_user("bob", student_id="20260002")
    first = _submit(client, student_headers, open_batch["id"]).json()
    _submit(client, student_headers, second_batch["id"])
    _submit(client, auth_headers(bob), open_batch["id"])

    client.patch(
        f"/api/applications/{first['id']}/review",
        json={"status": ApplicationStatus.APPROVED},
        headers=admin_headers,
    )

    everything = client.get("/api/applications/admin?status=all&batch_id=all", headers=admin_headers)
    assert len(everything.json()) == 3

    approved = client.get("/api/applications/admin", params={"status": "approved"}, headers=admin_headers)
    assert [a["id"] for a in approved.json()] == [first["id"]]

    in_batch = client.get(
        "/api/applications/admin",
        params={"status": "pending", "batch_id": open_batch["id"]},
        headers=admin_headers,
    )
    assert len(in_batch.json()) == 1
    assert in_batch.json()[0]["applicant"]["username"] == "bob"

    bad = client.get("/api/applications/admin", params={"batch_id": "abc"}, headers=admin_headers)
    assert bad.status_code == status.HTTP_400_BAD_REQUEST


def test_admin_list_requires_admin(client, student_headers):
    resp = client.get("/api/applications/admin", headers=student_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_review_records_reviewer_and_comment(client, admin, admin_headers, student_headers, open_batch):
    application = _submit(client, student_headers, open_batch["id"]).json()

    resp = client.patch(
        f"/api/applications/{application['id']}/review",
        json={"status": ApplicationStatus.REJECTED, "review_comment": "Missing certificate"},
        headers=admin_headers,
    )
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["status"] == ApplicationStatus.REJECTED
    assert body["review_comment"] == "Missing certificate"
    assert body["reviewed_by"] == admin["id"]
    assert body["reviewed_at"] is not None
    assert body["editable"] is False


def test_review_rejects_unknown_status(client, admin_headers, student_headers, open_batch):
    application = _submit(client, student_headers, open_batch["id"]).json()
    resp = client.patch(
        f"/api/applications/{application['id']}/review",
        json={"status": "maybe"},
        headers=admin_headers,
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST


def test_review_missing_application_returns_404(client, admin_headers):
    resp = client.patch(
        "/api/applications/9999/review",
        json={"status": ApplicationStatus.APPROVED},
        headers=admin_headers,
    )
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_admin_delete_application(client, admin_headers, student_headers, open_batch):
    application = _submit(client, student_headers, open_batch["id"]).json()

    resp = client.delete(f"/api/applications/{application['id']}", headers=admin_headers)
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["success"] is True
    assert body["deleted_application"]["id"] == application["id"]
    assert get_application_by_id(application["id"]) is None

    again = client.delete(f"/api/applications/{application['id']}", headers=admin_headers)
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_huge_score_does_not_break_listings(client, admin_headers, student_headers, open_batch):
    items = [{"name": "Typo", "score": 10 ** 400}, {"name": "Paper", "score": 2}]
    resp = _submit(client, student_headers, open_batch["id"], items)
    assert resp.status_code == status.HTTP_201_CREATED
    assert resp.json()["total_score"] == 2

    listing = client.get("/api/applications/admin", headers=admin_headers)
    assert listing.status_code == status.HTTP_200_OK
    assert listing.json()[0]["total_score"] == 2

    recent = client.get("/api/admin/dashboard/recent-applications", headers=admin_headers)
    assert recent.status_code == status.HTTP_200_OK
    assert client.get("/api/student/applications", headers=student_headers).status_code == status.HTTP_200_OK
