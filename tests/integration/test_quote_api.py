"""
Integration tests for the quote endpoints
"""

from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from quote_api.app.core.security import create_access_token
from quote_api.app.main import app
from quote_api.app.services.quote_service import QuoteService, get_quote_service

REPAIR = {"title": "Repair", "description": "Fix roof", "amount": "150.50"}


@pytest.fixture
def created(client, auth_headers):
    """Create a quote through the API and return its representation"""
    response = client.post("/quote", data=REPAIR, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["quote"]


@pytest.fixture
def override_quotes():
    """Swap the quote repository for the duration of a test"""
    def _override(repository):
        app.dependency_overrides[get_quote_service] = lambda: repository
    yield _override
    app.dependency_overrides.pop(get_quote_service, None)


@pytest.mark.integration
class TestCreateQuote:

    def test_create(self, client, auth_headers):
        before = datetime.now().replace(microsecond=0)
        response = client.post("/quote", data=REPAIR, headers=auth_headers)
        after = datetime.now()

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Devis créé avec succès."
        quote = body["quote"]
        assert set(quote) == {"id", "title", "description", "amount", "created_at"}
        assert quote["title"] == "Repair"
        assert quote["description"] == "Fix roof"
        assert quote["amount"] == "150.50"
        assert isinstance(quote["id"], int)
        created_at = datetime.strptime(quote["created_at"], "%Y-%m-%d %H:%M:%S")
        assert before <= created_at <= after

    def test_create_assigns_fresh_ids(self, client, auth_headers):
        first = client.post("/quote", data=REPAIR, headers=auth_headers).json()["quote"]
        second = client.post("/quote", data=REPAIR, headers=auth_headers).json()["quote"]
        assert first["id"] != second["id"]

    def test_amount_rounded_to_cents(self, client, auth_headers):
        data = dict(REPAIR, amount="99.999")
        response = client.post("/quote", data=data, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["quote"]["amount"] == "100.00"

    @pytest.mark.parametrize("missing", ["title", "description", "amount"])
    def test_missing_field(self, client, auth_headers, quote_count, missing):
        data = {k: v for k, v in REPAIR.items() if k != missing}
        response = client.post("/quote", data=data, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {
            "error": True,
            "message": "Le titre, la description et le montant sont requis.",
        }
        assert quote_count() == 0

    def test_empty_field(self, client, auth_headers, quote_count):
        response = client.post("/quote", data=dict(REPAIR, description=""), headers=auth_headers)
        assert response.status_code == 400
        assert quote_count() == 0

    def test_malformed_multipart_body(self, client, auth_headers, quote_count):
        body = (
            b"--xyz\r\n"
            b"Content-Disposition: form-data\r\n"
            b"\r\n"
            b"Repair\r\n"
            b"--xyz--\r\n"
        )
        headers = dict(auth_headers, **{"Content-Type": "multipart/form-data; boundary=xyz"})
        response = client.post("/quote", content=body, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": True, "message": "Requête invalide."}
        assert quote_count() == 0

    def test_non_numeric_amount(self, client, auth_headers, quote_count):
        response = client.post("/quote", data=dict(REPAIR, amount="cent euros"), headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": True, "message": "Le montant doit être un nombre."}
        assert quote_count() == 0

    def test_owner_is_caller(self, client, auth_headers, user, created):
        from quote_api.app.core.db import get_connection
        conn = get_connection()
        try:
            row = conn.execute("SELECT user_id FROM quotes WHERE id = ?", (created["id"],)).fetchone()
        finally:
            conn.close()
        assert row["user_id"] == user.id


@pytest.mark.integration
class TestReadQuote:

    def test_read_after_create(self, client, auth_headers, created):
        response = client.get(f"/quote/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "quote": created}

    def test_read_missing(self, client, auth_headers):
        response = client.get("/quote/999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": True, "message": "Devis non trouvé."}

    def test_read_non_integer_id(self, client, auth_headers):
        response = client.get("/quote/abc", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": True, "message": "Requête invalide."}

    def test_any_user_can_read(self, client, other_auth_headers, created):
        response = client.get(f"/quote/{created['id']}", headers=other_auth_headers)
        assert response.status_code == 200


@pytest.mark.integration
class TestUpdateQuote:

    def test_update(self, client, auth_headers, created):
        data = {"title": "Repair v2", "description": "Fix roof and gutter", "amount": "175"}
        response = client.put(f"/quote/{created['id']}", data=data, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Devis mis à jour avec succès."
        assert body["quote"] == {
            "id": created["id"],
            "title": "Repair v2",
            "description": "Fix roof and gutter",
            "amount": "175.00",
            "created_at": created["created_at"],
        }

        read = client.get(f"/quote/{created['id']}", headers=auth_headers).json()["quote"]
        assert read == body["quote"]

    def test_update_empty_title_leaves_quote_unchanged(self, client, auth_headers, created):
        data = {"title": "", "description": "x", "amount": "5"}
        response = client.put(f"/quote/{created['id']}", data=data, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] is True

        read = client.get(f"/quote/{created['id']}", headers=auth_headers).json()["quote"]
        assert read == created

    def test_update_non_numeric_amount(self, client, auth_headers, created):
        data = dict(REPAIR, amount="beaucoup")
        response = client.put(f"/quote/{created['id']}", data=data, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Le montant doit être un nombre."

        read = client.get(f"/quote/{created['id']}", headers=auth_headers).json()["quote"]
        assert read == created

    def test_update_missing(self, client, auth_headers):
        response = client.put("/quote/999", data=REPAIR, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": True, "message": "Devis non trouvé."}

    def test_update_missing_checked_before_fields(self, client, auth_headers):
        response = client.put("/quote/999", data={}, headers=auth_headers)
        assert response.status_code == 404

    def test_update_of_quote_deleted_meanwhile(self, client, auth_headers, created, override_quotes):
        class DeletedAfterLookup(QuoteService):
            @classmethod
            async def find(cls, quote_id):
                quote = await super().find(quote_id)
                if quote is not None:
                    await QuoteService.delete(quote)
                return quote

        override_quotes(DeletedAfterLookup)
        data = {"title": "New", "description": "Fix roof", "amount": "10"}
        response = client.put(f"/quote/{created['id']}", data=data, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": True, "message": "Devis non trouvé."}
        assert client.get(f"/quote/{created['id']}", headers=auth_headers).status_code == 404


@pytest.mark.integration
class TestDeleteQuote:

    def test_delete_then_gone(self, client, auth_headers, created):
        url = f"/quote/{created['id']}"
        response = client.delete(url, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Devis supprimé avec succès."}

        assert client.get(url, headers=auth_headers).status_code == 404
        assert client.put(url, data=REPAIR, headers=auth_headers).status_code == 404

        second = client.delete(url, headers=auth_headers)
        assert second.status_code == 404
        assert second.json() == {"error": True, "message": "Devis non trouvé."}

    def test_delete_missing(self, client, auth_headers):
        assert client.delete("/quote/999", headers=auth_headers).status_code == 404


@pytest.mark.integration
class TestListQuotes:

    def test_list_empty(self, client, auth_headers):
        response = client.get("/quotes", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"error": False, "quotes": []}

    def test_list_all_owners(self, client, auth_headers, other_auth_headers):
        mine = client.post("/quote", data=REPAIR, headers=auth_headers).json()["quote"]
        theirs = client.post(
            "/quote", data=dict(REPAIR, title="Paint"), headers=other_auth_headers
        ).json()["quote"]

        response = client.get("/quotes", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"error": False, "quotes": [mine, theirs]}

    def test_list_excludes_deleted(self, client, auth_headers, created):
        kept = client.post("/quote", data=REPAIR, headers=auth_headers).json()["quote"]
        client.delete(f"/quote/{created['id']}", headers=auth_headers)
        assert client.get("/quotes", headers=auth_headers).json()["quotes"] == [kept]


@pytest.mark.integration
class TestAuthentication:

    @pytest.mark.parametrize(
        "method, url",
        [
            ("post", "/quote"),
            ("get", "/quote/1"),
            ("put", "/quote/1"),
            ("delete", "/quote/1"),
            ("get", "/quotes"),
        ],
    )
    def test_missing_token(self, client, override_quotes, method, url):
        repository = Mock()
        repository.find = AsyncMock()
        repository.find_all = AsyncMock()
        repository.save = AsyncMock()
        repository.delete = AsyncMock()
        override_quotes(repository)

        kwargs = {"data": REPAIR} if method in ("post", "put") else {}
        response = getattr(client, method)(url, **kwargs)

        assert response.status_code == 401
        assert response.json() == {"error": True, "message": "Token d'authentification manquant."}
        assert response.headers["WWW-Authenticate"] == "Bearer"
        for call in (repository.find, repository.find_all, repository.save, repository.delete):
            call.assert_not_called()

    def test_expired_token(self, client, user, quote_count):
        token = create_access_token({"sub": user.email}, expires_delta=-60)
        response = client.post("/quote", data=REPAIR, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"error": True, "message": "Token invalide ou expiré."}
        assert quote_count() == 0

    def test_unknown_user(self, client):
        token = create_access_token({"sub": "ghost@example.com"})
        response = client.get("/quotes", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Utilisateur introuvable."

    def test_token_checked_before_validation(self, client):
        response = client.get("/quote/abc")
        assert response.status_code == 401


@pytest.mark.integration
class TestInternalErrors:

    def test_list_storage_failure(self, client, auth_headers, override_quotes):
        repository = Mock()
        repository.find_all = AsyncMock(side_effect=RuntimeError("disk I/O error"))
        override_quotes(repository)

        response = client.get("/quotes", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {
            "error": True,
            "message": "Une erreur est survenue lors de la récupération des devis : disk I/O error",
        }

    def test_create_storage_failure(self, client, auth_headers, override_quotes):
        repository = Mock()
        repository.save = AsyncMock(side_effect=RuntimeError("database is locked"))
        override_quotes(repository)

        response = client.post("/quote", data=REPAIR, headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {
            "error": True,
            "message": "Erreur lors de la création du devis : database is locked",
        }
