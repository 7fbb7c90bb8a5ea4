from unittest.mock import MagicMock, patch

from cinelog.extensions import db
from cinelog.models.review import Review
from cinelog.models.settings import UserSettings
from cinelog.services.catalog import MovieCatalog
from cinelog.services.reviews import ReviewStore
from cinelog.services.tmdb import to_catalog_movie

from support import AppTestCase, build_feed, feed_item, tmdb_movie


def _response(status=200, text="", payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.reason = reason
    resp.text = text
    resp.json.return_value = payload
    return resp


class ApiTestCase(AppTestCase):
    def setUp(self):
        super().setUp()
        self.client = self.app.test_client()
        self.user = self.make_user("carl", "secret", email="carl@example.com")
        self.user_id = self.user.id

    def login(self, username="carl", password="secret"):
        return self.client.post("/auth/login", json={"username": username, "password": password})


class TestAuth(ApiTestCase):
    def test_login_and_status(self) -> None:
        self.assertFalse(self.client.get("/auth/status").get_json()["authenticated"])

        resp = self.login()
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.get_json()["ok"])

        status = self.client.get("/auth/status").get_json()
        self.assertTrue(status["authenticated"])
        self.assertEqual(status["username"], "carl")

        self.assertEqual(self.client.post("/auth/logout").status_code, 204)
        self.assertFalse(self.client.get("/auth/status").get_json()["authenticated"])

    def test_bad_password(self) -> None:
        resp = self.login(password="wrong")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.get_json()["ok"])

    def test_protected_endpoints_need_login(self) -> None:
        self.assertEqual(self.client.get("/api/reviews").status_code, 401)
        self.assertEqual(self.client.post("/api/import/letterboxd", json={}).status_code, 401)


class TestMovieEndpoints(ApiTestCase):
    def setUp(self):
        super().setUp()
        MovieCatalog().add(to_catalog_movie(tmdb_movie(603, "The Matrix", "1999-03-30")))
        MovieCatalog().add(to_catalog_movie(tmdb_movie(13, "Forrest Gump", "1994-07-06")))

    def test_list_and_detail(self) -> None:
        data = self.client.get("/api/movies?sort=alphabetical").get_json()
        self.assertEqual(data["total"], 2)
        self.assertEqual([m["title"] for m in data["items"]], ["Forrest Gump", "The Matrix"])
        self.assertEqual(data["items"][1]["posterUrl"], "https://image.tmdb.org/t/p/w342/poster603.jpg")

        movie = self.client.get("/api/movies/603").get_json()
        self.assertEqual(movie["director"], "Lana Wachowski")
        self.assertEqual(movie["year"], 1999)
        self.assertEqual(self.client.get("/api/movies/999").status_code, 404)

    def test_search(self) -> None:
        results = self.client.get("/api/movies/search?q=matrix").get_json()["results"]
        self.assertEqual([r["id"] for r in results], ["603"])

    def test_review_lifecycle(self) -> None:
        self.login()
        self.assertIsNone(self.client.get("/api/movies/603/review").get_json()["review"])

        resp = self.client.put("/api/movies/603/review", json={
            "rating": 8, "reviewText": "Still great", "watchedDate": "2024-05-01", "isRewatch": True,
        })
        self.assertEqual(resp.status_code, 200)
        review = resp.get_json()["review"]
        self.assertEqual(review["id"], f"{self.user_id}_603")
        self.assertEqual(review["source"], "manual")
        self.assertEqual(review["watchedDate"], "2024-05-01")

        resp = self.client.put("/api/movies/603/review", json={"rating": 9})
        self.assertEqual(resp.get_json()["review"]["rating"], 9)
        self.assertEqual(Review.query.count(), 1)

        self.assertEqual(self.client.delete("/api/movies/603/review").status_code, 200)
        self.assertEqual(self.client.delete("/api/movies/603/review").status_code, 404)

    def test_review_validation(self) -> None:
        self.login()
        self.assertEqual(self.client.put("/api/movies/603/review", json={"rating": 0}).status_code, 400)
        self.assertEqual(self.client.put("/api/movies/603/review", json={"rating": 11}).status_code, 400)
        self.assertEqual(
            self.client.put("/api/movies/603/review", json={"rating": 5, "watchedDate": "yesterday"}).status_code,
            400,
        )
        self.assertEqual(self.client.put("/api/movies/999/review", json={"rating": 5}).status_code, 404)

    def test_movie_reviews_with_authors(self) -> None:
        other = self.make_user("dana", "pw")
        UserSettings.for_user(other).display_name = "Dana K"
        db.session.commit()
        store = ReviewStore()
        store.save_manual(self.user_id, "603", 6, "ok")
        store.save_manual(other.id, "603", 10, "masterpiece")

        data = self.client.get("/api/movies/603/reviews?sort=highest").get_json()

        self.assertEqual(data["count"], 2)
        self.assertEqual(data["averageRating"], 8.0)
        self.assertEqual([(r["author"], r["rating"]) for r in data["reviews"]],
                         [("Dana K", 10), ("Carl", 6)])

    def test_my_reviews(self) -> None:
        self.login()
        ReviewStore().save_manual(self.user_id, "13", 7)
        data = self.client.get("/api/reviews").get_json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["reviews"][0]["movie"]["title"], "Forrest Gump")


class TestImportEndpoint(ApiTestCase):
    FEED = build_feed(
        feed_item(603, "The Matrix", "1999", rating="4.5", guid="lb-1"),
        feed_item(424242, "Nowhere", "2001", rating="3", guid="lb-2"),
    )

    def fake_get(self, url, headers=None, params=None, timeout=None):
        if "allorigins" in url:
            return _response(text=self.FEED)
        if url.endswith("/movie/603"):
            return _response(payload=tmdb_movie(603, "The Matrix"))
        return _response(status=404, reason="Not Found")

    def test_import_updates_reviews_and_settings(self) -> None:
        self.login()
        with patch("cinelog.services.letterboxd.requests.get", side_effect=self.fake_get), \
                patch("cinelog.services.tmdb.requests.get", side_effect=self.fake_get):
            resp = self.client.post("/api/import/letterboxd", json={"username": "carl_lb"})
            again = self.client.post("/api/import/letterboxd", json={})

        data = resp.get_json()
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(data["result"], {
            "success": True, "imported": 1, "skipped": 0, "failed": 1,
            "errors": ["Nowhere: Movie not found on TMDB: Nowhere (2001)"],
        })
        self.assertEqual([p["processed"] for p in data["progress"]], [0, 1, 2])
        self.assertEqual(data["progress"][-1]["currentMovie"], "Nowhere (2001)")
        self.assertEqual(data["letterboxd"]["username"], "carl_lb")
        self.assertEqual(data["letterboxd"]["totalReviewsImported"], 1)
        self.assertIsNotNone(data["letterboxd"]["lastImportDate"])

        # second run uses the saved username and imports nothing new
        second = again.get_json()
        self.assertEqual(again.status_code, 200)
        self.assertEqual((second["result"]["imported"], second["result"]["skipped"]), (0, 1))
        self.assertEqual(second["letterboxd"]["totalReviewsImported"], 1)

    def test_unreachable_feed(self) -> None:
        self.login()
        with patch("cinelog.services.letterboxd.requests.get",
                   return_value=_response(status=500, reason="Internal Server Error")):
            resp = self.client.post("/api/import/letterboxd", json={"username": "carl_lb"})

        self.assertEqual(resp.status_code, 502)
        body = resp.get_json()
        self.assertFalse(body["ok"])
        self.assertEqual(body["error"], "Failed to fetch RSS feed: 500 Internal Server Error")
        self.assertIsNone(db.session.get(UserSettings, self.user_id).letterboxd_last_import)

    def test_username_required(self) -> None:
        self.login()
        resp = self.client.post("/api/import/letterboxd", json={})
        self.assertEqual(resp.status_code, 400)


class TestSettingsEndpoints(ApiTestCase):
    def test_defaults_created_on_first_read(self) -> None:
        self.login()
        data = self.client.get("/api/settings").get_json()
        self.assertEqual(data["displayName"], "carl")
        self.assertEqual(data["letterboxd"], {"username": "", "lastImportDate": None, "totalReviewsImported": 0})

    def test_patch_and_reset(self) -> None:
        self.login()
        resp = self.client.patch("/api/settings", json={
            "displayName": "Carl S", "letterboxdUsername": " carl_lb ", "themeMode": "dark",
        })
        self.assertEqual(resp.status_code, 200)
        settings = resp.get_json()["settings"]
        self.assertEqual(settings["letterboxd"]["username"], "carl_lb")
        self.assertEqual(settings["themeMode"], "dark")

        self.assertEqual(self.client.patch("/api/settings", json={"themeMode": "neon"}).status_code, 400)
        self.assertEqual(self.client.get("/api/settings").get_json()["themeMode"], "dark")

        reset = self.client.post("/api/settings/reset").get_json()["settings"]
        self.assertEqual(reset["displayName"], "Carl S")
        self.assertEqual(reset["themeMode"], "system")
        self.assertEqual(reset["letterboxd"]["username"], "")
