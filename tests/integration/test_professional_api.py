from httpx import AsyncClient


class TestProfessionalAPI:
    async def test_search(self, client: AsyncClient, sample_professional):
        response = await client.get("/api/v1/professionals", params={"q": "souza"})

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["displayName"] == "Ana Souza"
        assert data[0]["id"] == str(sample_professional.uuid)

    async def test_profile(self, client: AsyncClient, sample_professional, sample_service):
        response = await client.get(f"/api/v1/professionals/{sample_professional.uuid}")

        assert response.status_code == 200
        data = response.json()
        assert data["workSchedule"]["monday"] == {
            "isActive": True,
            "workHours": {"start": "09:00", "end": "12:00"},
            "breaks": [{"start": "10:00", "end": "10:30"}],
        }
        assert data["services"][0]["durationMinutes"] == 30

    async def test_unknown_profile_is_not_found(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/professionals/00000000-0000-0000-0000-000000000000"
        )

        assert response.status_code == 404

    async def test_create_professional_and_service(self, client: AsyncClient):
        created = await client.post(
            "/api/v1/professionals",
            json={
                "displayName": "Eva Rocha",
                "email": "eva@example.com",
                "workSchedule": {
                    "friday": {"workHours": {"start": "08:00", "end": "12:00"}}
                },
            },
        )
        assert created.status_code == 201
        professional_id = created.json()["id"]

        service = await client.post(
            f"/api/v1/professionals/{professional_id}/services",
            json={"name": "Massage", "durationMinutes": 60, "price": "120.00"},
        )

        assert service.status_code == 201
        assert service.json()["durationMinutes"] == 60

    async def test_create_duplicate_email_is_bad_request(
        self, client: AsyncClient, sample_professional
    ):
        response = await client.post(
            "/api/v1/professionals",
            json={"displayName": "Ana Twin", "email": "ana@example.com"},
        )

        assert response.status_code == 400

    async def test_service_with_zero_duration_is_bad_request(
        self, client: AsyncClient, sample_professional
    ):
        response = await client.post(
            f"/api/v1/professionals/{sample_professional.uuid}/services",
            json={"name": "Nothing", "durationMinutes": 0},
        )

        assert response.status_code == 400

    async def test_replace_schedule(self, client: AsyncClient, sample_professional):
        professional_id = str(sample_professional.uuid)

        response = await client.put(
            f"/api/v1/professionals/{professional_id}/schedule",
            json={
                "schedule": {
                    "saturday": {"workHours": {"start": "10:00", "end": "14:00"}}
                }
            },
        )

        assert response.status_code == 200
        assert list(response.json()["workSchedule"]) == ["saturday"]

    async def test_time_block_blocks_availability(
        self, client: AsyncClient, sample_professional, sample_service
    ):
        professional_id = str(sample_professional.uuid)
        service_id = str(sample_service.uuid)

        block = await client.post(
            f"/api/v1/professionals/{professional_id}/time-blocks",
            json={
                "start": "2030-01-07T09:00:00+00:00",
                "end": "2030-01-07T12:00:00+00:00",
                "reason": "Training",
            },
        )
        availability = await client.post(
            "/api/v1/availability",
            json={
                "date": "2030-01-07",
                "professionalId": professional_id,
                "serviceId": service_id,
            },
        )

        assert block.status_code == 201
        assert availability.json() == []

        deleted = await client.delete(
            f"/api/v1/professionals/{professional_id}/time-blocks/{block.json()['id']}"
        )
        assert deleted.status_code == 204

    async def test_time_block_with_mixed_offsets(
        self, client: AsyncClient, sample_professional
    ):
        professional_id = str(sample_professional.uuid)

        response = await client.post(
            f"/api/v1/professionals/{professional_id}/time-blocks",
            json={"start": "2030-01-07T10:00:00Z", "end": "2030-01-07T11:00:00"},
        )

        assert response.status_code == 201
        assert response.json()["start"].startswith("2030-01-07T10:00:00")

    async def test_time_block_ending_before_start_is_bad_request(
        self, client: AsyncClient, sample_professional
    ):
        professional_id = str(sample_professional.uuid)

        response = await client.post(
            f"/api/v1/professionals/{professional_id}/time-blocks",
            json={"start": "2030-01-07T11:00:00Z", "end": "2030-01-07T10:00:00"},
        )

        assert response.status_code == 400
