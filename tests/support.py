import unittest

from cinelog import create_app
from cinelog.config import TestingConfig
from cinelog.extensions import db
from cinelog.models.user import User

FEED_HEAD = """<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0" xmlns:letterboxd="https://letterboxd.com" xmlns:tmdb="https://themoviedb.org"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
<channel>
<title>Letterboxd - carl</title>
<link>https://letterboxd.com/carl/</link>
"""
FEED_TAIL = "</channel>\n</rss>\n"


def feed_item(tmdb_id=603, title="The Matrix", year="1999", rating="4.5",
              guid="letterboxd-review-1", description="<p>Great <b>movie</b>!</p>",
              watched="2024-03-02", rewatch="No", pub="Sat, 02 Mar 2024 21:15:00 +1300",
              link=None):
    parts = ["<item>"]
    parts.append(f"<title>{title}, {year}</title>")
    parts.append(f"<link>{link or 'https://letterboxd.com/carl/film/' + title.lower().replace(' ', '-') + '/'}</link>")
    if guid is not None:
        parts.append(f'<guid isPermaLink="false">{guid}</guid>')
    if pub is not None:
        parts.append(f"<pubDate>{pub}</pubDate>")
    if watched is not None:
        parts.append(f"<letterboxd:watchedDate>{watched}</letterboxd:watchedDate>")
    if rewatch is not None:
        parts.append(f"<letterboxd:rewatch>{rewatch}</letterboxd:rewatch>")
    parts.append(f"<letterboxd:filmTitle>{title}</letterboxd:filmTitle>")
    parts.append(f"<letterboxd:filmYear>{year}</letterboxd:filmYear>")
    if rating is not None:
        parts.append(f"<letterboxd:memberRating>{rating}</letterboxd:memberRating>")
    if tmdb_id is not None:
        parts.append(f"<tmdb:movieId>{tmdb_id}</tmdb:movieId>")
    if description is not None:
        parts.append(f"<description><![CDATA[{description}]]></description>")
    parts.append("<dc:creator>Carl</dc:creator>")
    parts.append("</item>")
    return "\n".join(parts) + "\n"


def build_feed(*items):
    return FEED_HEAD + "".join(items) + FEED_TAIL


def tmdb_movie(tmdb_id=603, title="The Matrix", release_date="1999-03-30", cast_size=3):
    return {
        "id": tmdb_id,
        "title": title,
        "original_title": title,
        "overview": f"Overview of {title}",
        "tagline": "Welcome to the Real World.",
        "poster_path": f"/poster{tmdb_id}.jpg",
        "backdrop_path": f"/backdrop{tmdb_id}.jpg",
        "release_date": release_date,
        "runtime": 136,
        "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        "vote_average": 8.2,
        "vote_count": 25000,
        "popularity": 80.5,
        "adult": False,
        "original_language": "en",
        "status": "Released",
        "budget": 63000000,
        "revenue": 463517383,
        "imdb_id": "tt0133093",
        "credits": {
            "cast": [
                {"id": i, "name": f"Actor {i}", "character": f"Role {i}", "profile_path": None, "order": i}
                for i in range(cast_size)
            ],
            "crew": [
                {"id": 900, "name": "Bill Pope", "job": "Director of Photography", "department": "Camera"},
                {"id": 901, "name": "Lana Wachowski", "job": "Director", "department": "Directing"},
                {"id": 902, "name": "Lilly Wachowski", "job": "Director", "department": "Directing"},
            ],
        },
    }


class FakeTmdbClient:
    """Serves movie payloads from a dict; ids not in it are reported as 404."""

    def __init__(self, movies=None):
        self.movies = dict(movies or {})
        self.calls = []

    def movie_details(self, tmdb_id):
        self.calls.append(tmdb_id)
        return self.movies.get(int(tmdb_id))

    def movie_list(self, path, page=1, **params):
        self.calls.append((path, page))
        return {"results": [{"id": i} for i in self.movies], "total_pages": 1}


class FakeFeed:
    def __init__(self, xml_text=None, error=None):
        self.xml_text = xml_text
        self.error = error
        self.handles = []

    def fetch(self, handle):
        self.handles.append(handle)
        if self.error is not None:
            raise self.error
        return self.xml_text


class AppTestCase(unittest.TestCase):
    """Fresh app and in-memory database per test."""

    def setUp(self):
        self.app = create_app(TestingConfig)
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def make_user(self, username="carl", password="secret", email=None):
        user = User(username=username, email=email)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
