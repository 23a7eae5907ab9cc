import datetime as dt

from conftest import login_headers, register_user, submit_request

from odportal.core.config import Settings
from odportal.models.od_request import ODRequest, ODStatus
from odportal.services.dashboard import class_label, filter_requests, group_by_class, period_text, status_counts

MARCH_14 = dt.date(2026, 3, 14)
MARCH_15 = dt.date(2026, 3, 15)


def _request(
    event: str,
    *,
    year: str = "3rd Year",
    department: str = "CSE",
    section: str = "A",
    on_date: dt.date = MARCH_14,
    status: ODStatus = ODStatus.pending,
) -> ODRequest:
    return ODRequest(
        id=event,
        student_user_id="student",
        student_name="Student",
        student_id="REG",
        student_year=year,
        student_department=department,
        student_section=section,
        event_name=event,
        date=on_date,
        from_period=1,
        to_period=2,
        reason="Event",
        proof_document_path=f"proof/{event}.pdf",
        status=status,
    )


def _sample() -> list[ODRequest]:
    return [
        _request("a"),
        _request("b", section="B"),
        _request("c", on_date=MARCH_15),
        _request("d", department="ECE", status=ODStatus.hod_approved),
        _request("e", status=ODStatus.rejected),
        _request("f", year="1st Year", on_date=MARCH_15, status=ODStatus.hod_approved),
    ]


def test_period_text():
    assert period_text(3, 3) == "Period 3"
    assert period_text(2, 4) == "Period 2 to 4"


def test_class_label_joins_year_department_section():
    assert class_label(_request("x", year="2nd Year", department="ECE", section="B")) == "2nd Year ECE B"


def test_filter_by_class_and_date_is_exact_subset():
    requests = _sample()
    matched = filter_requests(requests, class_label="3rd Year CSE A", on_date=MARCH_14)
    assert [item.id for item in matched] == ["a", "e"]

    by_date = filter_requests(requests, on_date=MARCH_15)
    assert [item.id for item in by_date] == ["c", "f"]

    assert filter_requests(requests) == requests
    assert filter_requests(requests, class_label="4th Year CSE A") == []


def test_filter_by_status():
    requests = _sample()
    approved = filter_requests(requests, status=ODStatus.hod_approved)
    assert [item.id for item in approved] == ["d", "f"]
    assert all(item.status != ODStatus.rejected for item in filter_requests(requests, status=ODStatus.pending))


def test_group_by_class_follows_configured_order():
    labels = ["1st Year CSE A", "3rd Year CSE A", "3rd Year CSE B"]
    groups = group_by_class(_sample(), labels)
    assert [group.class_label for group in groups] == labels
    assert [group.count for group in groups] == [1, 3, 1]
    assert [item.id for item in groups[1].requests] == ["a", "c", "e"]

    with_unlisted = group_by_class(_sample(), labels, include_unlisted=True)
    assert with_unlisted[-1].class_label == "3rd Year ECE A"


def test_status_counts_cover_every_status():
    assert status_counts([]) == {"pending": 0, "class_approved": 0, "hod_approved": 0, "rejected": 0}
    assert status_counts(_sample()) == {"pending": 3, "class_approved": 0, "hod_approved": 2, "rejected": 1}


def test_default_class_list():
    settings = Settings(_env_file=None)
    assert len(settings.class_labels) == 16
    assert settings.class_labels[0] == "1st Year CSE A"
    assert settings.class_labels[-1] == "4th Year ECE B"


def test_class_list_accepts_comma_separated_values():
    settings = Settings(_env_file=None, class_years="1st Year, 2nd Year", class_departments="CSE", class_sections="A")
    assert settings.class_labels == ["1st Year CSE A", "2nd Year CSE A"]


def test_student_dashboard_lists_own_requests_with_counts(client, users):
    headers = users["student"]["headers"]
    submit_request(client, headers, date="2026-03-14")
    latest = submit_request(client, headers, date="2026-03-20", event_name="Quiz Finals").json()

    response = client.get("/api/dashboards/student", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["requests"][0]["id"] == latest["id"]
    assert data["counts"]["pending"] == 2


def test_dashboards_are_role_gated(client, users):
    assert client.get("/api/dashboards/hod", headers=users["student"]["headers"]).status_code == 403
    assert client.get("/api/dashboards/faculty", headers=users["hod"]["headers"]).status_code == 403
    assert client.get("/api/dashboards/student", headers=users["faculty"]["headers"]).status_code == 403
    assert client.get("/api/dashboards/class-incharge").status_code in {401, 403}


def test_hod_dashboard_date_view(client, users):
    headers = users["student"]["headers"]
    first = submit_request(client, headers, date="2026-03-14").json()
    submit_request(client, headers, date="2026-03-14", event_name="Debate")
    submit_request(client, headers, date="2026-03-15", event_name="Expo")
    client.put(
        f"/api/od-requests/{first['id']}/status",
        json={"status": "class_approved"},
        headers=users["class_incharge"]["headers"],
    )

    data = client.get("/api/dashboards/hod", params={"date": "2026-03-14"}, headers=users["hod"]["headers"]).json()
    assert [item["id"] for item in data["queue"]] == [first["id"]]
    assert data["total"] == 1
    assert len(data["requests_on_date"]) == 2
    assert data["counts"]["pending"] == 1


def test_faculty_dashboard_groups_hod_approved_requests(client, users):
    register_user(
        client,
        "student",
        name="Bala Student",
        email="bala@example.com",
        registration_number="21ECE007",
        year="1st Year",
        department="ECE",
        section="B",
    )
    other_headers = login_headers(client, "bala@example.com")

    approved_ids = [
        submit_request(client, users["student"]["headers"]).json()["id"],
        submit_request(client, other_headers).json()["id"],
    ]
    submit_request(client, users["student"]["headers"], event_name="Still pending")
    for request_id in approved_ids:
        client.put(
            f"/api/od-requests/{request_id}/status",
            json={"status": "class_approved"},
            headers=users["class_incharge"]["headers"],
        )
        client.put(
            f"/api/od-requests/{request_id}/status",
            json={"status": "hod_approved"},
            headers=users["hod"]["headers"],
        )

    response = client.get(
        "/api/dashboards/faculty",
        params={"date": "2026-03-14", "class_label": "1st Year ECE B"},
        headers=users["faculty"]["headers"],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_on_od"] == 2
    counts = {group["class_label"]: group["count"] for group in data["classes"]}
    assert counts["3rd Year CSE A"] == 1
    assert counts["1st Year ECE B"] == 1
    assert counts["2nd Year CSE A"] == 0
    assert data["selected_class"]["class_label"] == "1st Year ECE B"
    assert [item["id"] for item in data["selected_class"]["requests"]] == [approved_ids[1]]

    other_day = client.get(
        "/api/dashboards/faculty",
        params={"date": "2026-03-15"},
        headers=users["faculty"]["headers"],
    ).json()
    assert other_day["total_on_od"] == 0
    assert other_day["selected_class"] is None
