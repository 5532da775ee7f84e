import unittest

from yt_dlp.utils import DownloadError, ExtractorError

from tube_json.bridge import Downloader, DownloaderResponse
from tube_json.engine import ExtractionEngine
from tube_json.engine.base import BridgedYoutubeDL, error_message, find_cause
from tube_json.errors import ChallengeRequiredError, ExtractionError
from tube_json.models import PlaylistInfoItem, StreamInfoItem


class FakeDownloader(Downloader):
    def execute(self, request):
        raise AssertionError("no network in tests")


class FakeYoutubeDL:
    def __init__(self, options, result=None, error=None):
        self.options = options
        self.result = result
        self.error = error
        self.urls = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def extract_info(self, url, download=True):
        self.urls.append((url, download))
        if self.error is not None:
            raise self.error
        return self.result


class FakeFactory:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.instances = []

    def __call__(self, options, downloader):
        ydl = FakeYoutubeDL(options, self.result, self.error)
        ydl.downloader = downloader
        self.instances.append(ydl)
        return ydl


def make_engine(result=None, error=None, **kwargs):
    factory = FakeFactory(result, error)
    engine = ExtractionEngine(ydl_factory=factory, **kwargs)
    return engine, factory


class TestInit(unittest.TestCase):
    def test_calls_before_init_fail(self):
        engine, _ = make_engine({"id": "x"})
        self.assertFalse(engine.initialized)
        with self.assertRaises(RuntimeError):
            engine.get_stream_info("dQw4w9WgXcQ")

    def test_init_is_idempotent(self):
        engine, _ = make_engine()
        first = FakeDownloader()
        self.assertIs(engine.init(first), engine)
        engine.init(FakeDownloader())
        self.assertTrue(engine.initialized)
        self.assertIs(engine.downloader, first)


class TestGetStreamInfo(unittest.TestCase):
    def test_resolves_id_and_converts(self):
        engine, factory = make_engine(
            {"id": "dQw4w9WgXcQ", "title": "Video", "duration": 10, "formats": []}
        )
        downloader = FakeDownloader()
        engine.init(downloader)

        info = engine.get_stream_info("dQw4w9WgXcQ")

        self.assertEqual(info.name, "Video")
        self.assertEqual(info.url, "https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        ydl = factory.instances[0]
        self.assertEqual(ydl.urls, [("https://www.youtube.com/watch?v=dQw4w9WgXcQ", False)])
        self.assertIs(ydl.downloader, downloader)
        self.assertTrue(ydl.options["noplaylist"])
        self.assertTrue(ydl.options["quiet"])
        self.assertNotIn("cookiefile", ydl.options)

    def test_cookies_file_is_forwarded(self):
        engine, factory = make_engine({"id": "x"}, cookies_file="/tmp/cookies.txt")
        engine.init(FakeDownloader())
        engine.get_stream_info("dQw4w9WgXcQ")
        self.assertEqual(factory.instances[0].options["cookiefile"], "/tmp/cookies.txt")

    def test_socket_timeout_is_forwarded(self):
        engine, factory = make_engine({"id": "x"}, socket_timeout=7.5)
        engine.init(FakeDownloader())
        engine.get_stream_info("dQw4w9WgXcQ")
        self.assertEqual(factory.instances[0].options["socket_timeout"], 7.5)

    def test_socket_timeout_left_to_yt_dlp_by_default(self):
        engine, factory = make_engine({"id": "x"})
        engine.init(FakeDownloader())
        engine.get_stream_info("dQw4w9WgXcQ")
        self.assertNotIn("socket_timeout", factory.instances[0].options)

    def test_empty_result_is_extraction_error(self):
        engine, _ = make_engine(None)
        engine.init(FakeDownloader())
        with self.assertRaises(ExtractionError):
            engine.get_stream_info("dQw4w9WgXcQ")

    def test_engine_error_becomes_extraction_error(self):
        cause = ExtractorError("Video unavailable", expected=True)
        engine, _ = make_engine(error=DownloadError("ERROR: Video unavailable", exc_info=(ExtractorError, cause, None)))
        engine.init(FakeDownloader())

        with self.assertRaises(ExtractionError) as ctx:
            engine.get_stream_info("dQw4w9WgXcQ")
        self.assertEqual(str(ctx.exception), "Video unavailable")

    def test_challenge_is_reraised(self):
        challenge = ChallengeRequiredError("reCaptcha challenge requested")
        error = DownloadError("ERROR: blocked", exc_info=(ChallengeRequiredError, challenge, None))
        engine, _ = make_engine(error=error)
        engine.init(FakeDownloader())

        with self.assertRaises(ChallengeRequiredError) as ctx:
            engine.get_stream_info("dQw4w9WgXcQ")
        self.assertIs(ctx.exception, challenge)


class TestSearch(unittest.TestCase):
    def test_entries_become_items(self):
        result = {
            "_type": "playlist",
            "entries": [
                {"ie_key": "Youtube", "url": "https://www.youtube.com/watch?v=a", "title": "A"},
                None,
                {"url": "https://www.youtube.com/playlist?list=PL1", "title": "B"},
            ],
        }
        engine, factory = make_engine(result, search_max_results=5)
        engine.init(FakeDownloader())

        items = engine.search("lofi", ["videos"], "upload_date")

        self.assertEqual(len(items), 2)
        self.assertIsInstance(items[0], StreamInfoItem)
        self.assertIsInstance(items[1], PlaylistInfoItem)
        ydl = factory.instances[0]
        self.assertEqual(ydl.options["extract_flat"], "in_playlist")
        self.assertEqual(ydl.options["playlistend"], 5)
        url = ydl.urls[0][0]
        self.assertIn("search_query=lofi", url)
        self.assertIn("sp=CAISAhAB", url)

    def test_bad_filter_fails_before_extraction(self):
        engine, factory = make_engine({"entries": []})
        engine.init(FakeDownloader())
        with self.assertRaises(ExtractionError):
            engine.search("q", ["podcasts"])
        self.assertEqual(factory.instances, [])


class TestHelpers(unittest.TestCase):
    def test_find_cause_follows_chains(self):
        challenge = ChallengeRequiredError("blocked")
        wrapped = ExtractorError("wrapped", cause=challenge)
        outer = DownloadError("ERROR: wrapped", exc_info=(ExtractorError, wrapped, None))
        self.assertIs(find_cause(outer, ChallengeRequiredError), challenge)
        self.assertIsNone(find_cause(ValueError("x"), ChallengeRequiredError))

    def test_error_message_strips_prefix(self):
        self.assertEqual(error_message(DownloadError("ERROR: boom")), "boom")
        self.assertEqual(error_message(ValueError("")), "ValueError")


class TestBridgedYoutubeDL(unittest.TestCase):
    def test_bridge_handler_is_installed(self):
        with BridgedYoutubeDL({"quiet": True}, downloader=FakeDownloader()) as ydl:
            director = ydl.build_request_director([])
            self.assertIn("Bridge", director.handlers)
            self.assertIsInstance(director.handlers["Bridge"].downloader, FakeDownloader)

    def test_socket_timeout_reaches_the_downloader(self):
        downloader = RecordingDownloader()
        with BridgedYoutubeDL(
            {"quiet": True, "socket_timeout": 7.5}, downloader=downloader
        ) as ydl:
            response = ydl.urlopen("https://example.com/a")
            self.assertEqual(response.read(), b"hello")

        request = downloader.requests[0]
        self.assertEqual((request.http_method, request.url), ("GET", "https://example.com/a"))
        self.assertEqual(request.timeout, 7.5)


class RecordingDownloader(Downloader):
    def __init__(self):
        self.requests = []

    def execute(self, request):
        self.requests.append(request)
        return DownloaderResponse(
            response_code=200,
            response_message="OK",
            response_headers={"Content-Type": ["text/plain"]},
            response_body="hello",
            latest_url=request.url,
            response_bytes=b"hello",
        )
