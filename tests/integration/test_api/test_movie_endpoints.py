import pytest

from app.api.v1.movies import get_metadata_client
from app.main import app
from app.models.movie import ContentType
from app.schemas.movie import MovieMetadata, SearchResult
from app.services.metadata_client import MetadataServiceError

API = "/api/v1"


class StubMetadataClient:
    """Canned TMDB answers for the movie endpoints."""

    search_error = None

    def lookup(self, title, content_type=ContentType.MOVIE):
        if title.lower() == "inception":
            return MovieMetadata(
                title="Inception", content_type=ContentType.MOVIE,
                api_source="tmdb", api_id="27205", year=2010,
            )
        return None

    def search(self, query, content_type=ContentType.MOVIE):
        if self.search_error:
            raise self.search_error
        return [SearchResult(id=27205, title="Inception", year="2010", content_type=content_type)]

    def get_keyword(self, tmdb_id, content_type=ContentType.MOVIE):
        return "dream"

    def get_trailer_url(self, tmdb_id, content_type=ContentType.MOVIE):
        return f"https://www.youtube.com/watch?v=trailer-{tmdb_id}"


@pytest.fixture
def metadata_client(db_session):
    stub = StubMetadataClient()
    app.dependency_overrides[get_metadata_client] = lambda: stub
    return stub


@pytest.fixture
def household_id(client, auth_headers, metadata_client):
    response = client.post(f"{API}/households", json={"name": "Movie Night"}, headers=auth_headers)
    return response.json()["data"]["id"]


def add_movie(client, headers, household_id, title, content_type="movie"):
    response = client.post(
        f"{API}/movies",
        json={"household_id": household_id, "title": title, "content_type": content_type},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.integration
class TestMovieEndpoints:

    def test_add_and_list(self, client, auth_headers, household_id):
        """Test adding a title and listing the watch list."""
        movie = add_movie(client, auth_headers, household_id, "inception")

        assert movie["title"] == "Inception"
        assert movie["year"] == 2010
        assert movie["status"] == "unwatched"

        listed = client.get(f"{API}/movies", params={"household_id": household_id}, headers=auth_headers)
        assert [m["id"] for m in listed.json()["data"]] == [movie["id"]]

    def test_status_filter_and_random(self, client, auth_headers, household_id):
        """Test status updates, status filtering and the random pick."""
        heat = add_movie(client, auth_headers, household_id, "Heat")
        add_movie(client, auth_headers, household_id, "Alien")

        updated = client.patch(
            f"{API}/movies/{heat['id']}/status", json={"status": "watched"}, headers=auth_headers
        )
        assert updated.json()["data"]["status"] == "watched"

        watched = client.get(
            f"{API}/movies", params={"household_id": household_id, "status": "watched"}, headers=auth_headers
        )
        assert [m["title"] for m in watched.json()["data"]] == ["Heat"]

        picked = client.get(f"{API}/movies/random", params={"household_id": household_id}, headers=auth_headers)
        assert picked.json()["data"]["title"] == "Alien"

    def test_random_with_nothing_left(self, client, auth_headers, household_id):
        """Test the random pick returns null when nothing is unwatched."""
        response = client.get(
            f"{API}/movies/random", params={"household_id": household_id, "content_type": "tv"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_delete(self, client, auth_headers, household_id):
        """Test deleting a title."""
        movie = add_movie(client, auth_headers, household_id, "Heat")

        response = client.delete(f"{API}/movies/{movie['id']}", headers=auth_headers)

        assert response.status_code == 200
        listed = client.get(f"{API}/movies", params={"household_id": household_id}, headers=auth_headers)
        assert listed.json()["data"] == []

    def test_outsider_cannot_read(self, client, auth_headers, household_id, carol_headers):
        """Test non-members cannot read the watch list."""
        add_movie(client, auth_headers, household_id, "Heat")

        response = client.get(f"{API}/movies", params={"household_id": household_id}, headers=carol_headers)

        assert response.status_code == 404

    def test_search(self, client, auth_headers, metadata_client):
        """Test title search."""
        response = client.get(f"{API}/movies/search", params={"query": "inception"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"][0]["title"] == "Inception"

    def test_search_error(self, client, auth_headers, metadata_client):
        """Test search errors are returned as bad requests."""
        metadata_client.search_error = MetadataServiceError("TMDB API key is not configured.")

        response = client.get(f"{API}/movies/search", params={"query": "inception"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "TMDB API key is not configured."

    def test_refresh_vibes(self, client, auth_headers, household_id):
        """Test refreshing vibes over HTTP."""
        add_movie(client, auth_headers, household_id, "inception")

        response = client.post(
            f"{API}/movies/refresh-vibes", params={"household_id": household_id}, headers=auth_headers
        )

        # The stubbed lookup carries no vibe, so refresh fills it in
        assert response.json()["data"] == {"updated": 1, "errors": 0}

    def test_trailer(self, client, auth_headers, household_id):
        """Test trailer links for enriched and plain titles."""
        enriched = add_movie(client, auth_headers, household_id, "inception")
        home_video = add_movie(client, auth_headers, household_id, "Home Video")

        found = client.get(f"{API}/movies/{enriched['id']}/trailer", headers=auth_headers)
        missing = client.get(f"{API}/movies/{home_video['id']}/trailer", headers=auth_headers)

        assert found.json()["data"] == {"trailer_url": "https://www.youtube.com/watch?v=trailer-27205"}
        assert missing.json()["data"] == {"trailer_url": None}
