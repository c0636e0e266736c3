"""HTTP tests for /bookings against SQLite."""

from decimal import Decimal

BOOKINGS = "/api/v1/bookings"


def _book(client, headers, seat_ids=None, seats_number=None, screening_id="screening-1", **extra):
    body = {"screening_id": screening_id, **extra}
    if seat_ids is not None:
        body["seat_ids"] = seat_ids
    if seats_number is not None:
        body["seats_number"] = seats_number
    return client.post(BOOKINGS, json=body, headers=headers)


class TestCreateBooking:
    def test_create_booking(self, client, seeded, user_headers):
        response = _book(client, user_headers, seat_ids=["A1", "A2"])

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Booking created successfully"
        data = body["data"]
        assert data["user_id"] == "user-1"
        assert data["status"] == "pending"
        assert data["seats_number"] == 2
        assert data["seat_ids"] == ["A1", "A2"]
        assert Decimal(str(data["total_price"])) == Decimal("25.00")

    def test_taken_seats_conflict(self, client, seeded, user_headers, other_user_headers):
        _book(client, user_headers, seat_ids=["A1", "A2"])

        response = _book(client, other_user_headers, seat_ids=["A2", "A3"])

        assert response.status_code == 409
        body = response.json()
        assert body["data"] is None
        assert body["seat_ids"] == ["A2"]
        assert "A2" in body["message"]

        seats = client.get("/api/v1/screenings/screening-1/booked-seats").json()["data"]
        assert seats == ["A1", "A2"]

    def test_matching_seats_number_is_accepted(self, client, seeded, user_headers):
        response = _book(client, user_headers, seat_ids=["A1"], seats_number=1)

        assert response.status_code == 201

    def test_requires_authentication(self, client, seeded):
        response = client.post(BOOKINGS, json={"screening_id": "screening-1", "seat_ids": ["A1"]})

        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated", "data": None}

    def test_invalid_token(self, client, seeded):
        response = _book(client, {"Authorization": "Bearer not-a-jwt"}, seat_ids=["A1"])

        assert response.status_code == 401

    def test_cannot_book_for_someone_else(self, client, seeded, user_headers, staff_headers):
        assert _book(client, user_headers, seat_ids=["A1"], user_id="user-2").status_code == 403

        response = _book(client, staff_headers, seat_ids=["A1"], user_id="user-2")
        assert response.status_code == 201
        assert response.json()["data"]["user_id"] == "user-2"

    def test_validation_errors_are_bad_requests(self, client, seeded, user_headers):
        response = client.post(BOOKINGS, json={"seat_ids": ["A1"]}, headers=user_headers)

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid request")

    def test_invalid_seat(self, client, seeded, user_headers):
        response = _book(client, user_headers, seat_ids=["Z9"])

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid seat ID: Z9"

    def test_unknown_screening(self, client, seeded, user_headers):
        response = _book(client, user_headers, seat_ids=["A1"], screening_id="nope")

        assert response.status_code == 404

    def test_count_only_booking_respects_capacity(self, client, seeded, user_headers):
        assert _book(client, user_headers, seats_number=4).status_code == 201

        response = _book(client, user_headers, seats_number=2)

        assert response.status_code == 409
        assert response.json()["message"] == "Only 1 seat(s) left for this screening"

    def test_named_seats_respect_count_only_bookings(self, client, seeded, user_headers, other_user_headers):
        assert _book(client, user_headers, seats_number=5).status_code == 201

        response = _book(client, other_user_headers, seat_ids=["A1"])

        assert response.status_code == 409
        assert response.json()["message"] == "Only 0 seat(s) left for this screening"
        assert client.get("/api/v1/screenings/screening-1/booked-seats").json()["data"] == []


class TestLifecycle:
    def _booking_id(self, client, headers, seat_ids=("A1",)):
        return _book(client, headers, seat_ids=list(seat_ids)).json()["data"]["booking_id"]

    def test_mark_used_requires_staff(self, client, seeded, user_headers, staff_headers):
        booking_id = self._booking_id(client, user_headers)

        assert client.patch(f"{BOOKINGS}/{booking_id}/mark-used", headers=user_headers).status_code == 403

        response = client.patch(f"{BOOKINGS}/{booking_id}/mark-used", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "used"
        assert response.json()["data"]["seat_ids"] == ["A1"]

    def test_used_booking_cannot_be_canceled(self, client, seeded, user_headers, staff_headers):
        booking_id = self._booking_id(client, user_headers)
        client.patch(f"{BOOKINGS}/{booking_id}/mark-used", headers=staff_headers)

        response = client.patch(f"{BOOKINGS}/{booking_id}/cancel", headers=user_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Booking has been used and cannot be canceled"

    def test_cancel_frees_the_seats(self, client, seeded, user_headers, other_user_headers):
        booking_id = self._booking_id(client, user_headers, ["A1", "A2"])

        response = client.patch(f"{BOOKINGS}/{booking_id}/cancel", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "canceled"
        assert client.get("/api/v1/screenings/screening-1/booked-seats").json()["data"] == []
        assert _book(client, other_user_headers, seat_ids=["A1"]).status_code == 201

    def test_other_users_cannot_touch_a_booking(self, client, seeded, user_headers, other_user_headers):
        booking_id = self._booking_id(client, user_headers)

        assert client.patch(f"{BOOKINGS}/{booking_id}/cancel", headers=other_user_headers).status_code == 403
        assert client.delete(f"{BOOKINGS}/{booking_id}", headers=other_user_headers).status_code == 403
        assert client.get(f"{BOOKINGS}/{booking_id}", headers=other_user_headers).status_code == 403

    def test_missing_booking_is_not_found(self, client, seeded, user_headers, staff_headers):
        assert client.patch(f"{BOOKINGS}/missing/mark-used", headers=staff_headers).status_code == 404
        assert client.patch(f"{BOOKINGS}/missing/cancel", headers=user_headers).status_code == 404
        assert client.patch(f"{BOOKINGS}/missing", json={}, headers=user_headers).status_code == 404
        assert client.delete(f"{BOOKINGS}/missing", headers=user_headers).status_code == 404

    def test_patch_status_back_to_pending_is_rejected(self, client, seeded, user_headers):
        booking_id = self._booking_id(client, user_headers)
        client.patch(f"{BOOKINGS}/{booking_id}", json={"status": "canceled"}, headers=user_headers)

        response = client.patch(f"{BOOKINGS}/{booking_id}", json={"status": "pending"}, headers=user_headers)

        assert response.status_code == 400

    def test_patch_same_terminal_status_is_rejected(self, client, seeded, user_headers, staff_headers):
        booking_id = self._booking_id(client, user_headers)
        client.patch(f"{BOOKINGS}/{booking_id}/mark-used", headers=staff_headers)

        response = client.patch(f"{BOOKINGS}/{booking_id}", json={"status": "used"}, headers=user_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Booking is already marked as used"

    def test_patch_unknown_status_is_a_bad_request(self, client, seeded, user_headers):
        booking_id = self._booking_id(client, user_headers)

        response = client.patch(f"{BOOKINGS}/{booking_id}", json={"status": "refunded"}, headers=user_headers)

        assert response.status_code == 400

    def test_release_seats(self, client, seeded, user_headers):
        booking_id = self._booking_id(client, user_headers, ["A1", "A2"])

        response = client.post(
            f"{BOOKINGS}/{booking_id}/release-seats", json={"seat_ids": ["A2"]}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["seat_ids"] == ["A1"]
        assert response.json()["data"]["seats_number"] == 1

    def test_delete(self, client, seeded, user_headers):
        booking_id = self._booking_id(client, user_headers)

        response = client.delete(f"{BOOKINGS}/{booking_id}", headers=user_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Booking deleted successfully", "data": None}
        assert client.get(f"{BOOKINGS}/{booking_id}", headers=user_headers).status_code == 404


class TestReads:
    def test_listing_requires_staff(self, client, seeded, user_headers, staff_headers):
        _book(client, user_headers, seat_ids=["A1"])

        assert client.get(BOOKINGS, headers=user_headers).status_code == 403
        response = client.get(BOOKINGS, headers=staff_headers)
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_user_bookings(self, client, seeded, user_headers, other_user_headers):
        _book(client, user_headers, seat_ids=["A1"])
        _book(client, other_user_headers, seat_ids=["A2"])

        response = client.get(f"{BOOKINGS}/user/user-1", headers=user_headers)

        assert [b["seat_ids"] for b in response.json()["data"]] == [["A1"]]
        assert client.get(f"{BOOKINGS}/user/user-2", headers=user_headers).status_code == 403

    def test_by_screening_and_status(self, client, seeded, user_headers, staff_headers):
        booking_id = _book(client, user_headers, seat_ids=["A1"]).json()["data"]["booking_id"]
        _book(client, user_headers, seat_ids=["A2"])
        client.patch(f"{BOOKINGS}/{booking_id}/cancel", headers=user_headers)

        by_screening = client.get(f"{BOOKINGS}/screening/screening-1", headers=staff_headers)
        canceled = client.get(f"{BOOKINGS}/status/canceled", headers=staff_headers)

        assert len(by_screening.json()["data"]) == 2
        assert [b["booking_id"] for b in canceled.json()["data"]] == [booking_id]

    def test_movie_stats(self, client, seeded, user_headers, staff_headers):
        _book(client, user_headers, seat_ids=["A1", "A2"])
        _book(client, user_headers, seats_number=1)

        response = client.get("/api/v1/movies/movie-1/stats", headers=staff_headers)

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_bookings"] == 2
        assert stats["total_seats"] == 3
        assert sum(day["seats"] for day in stats["daily"]) == 3

    def test_movie_without_stats(self, client, seeded, staff_headers):
        assert client.get("/api/v1/movies/movie-2/stats", headers=staff_headers).status_code == 404
