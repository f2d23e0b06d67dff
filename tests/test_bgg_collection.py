from dataclasses import replace

import pytest
import requests

from core.errors import TransportFailure
from fakes import FakeHttp, FakeResponse
from fetchers.bgg_collection import build_session, fetch_existing_state, parse_collection_xml

COLLECTION_XML = """<?xml version="1.0" encoding="utf-8" standalone="yes"?>
<items totalitems="2" termsofuse="https://boardgamegeek.com/xmlapi/termsofuse" pubdate="Mon, 01 Jan 2024 10:00:00 +0000">
  <item objecttype="thing" objectid="13" subtype="boardgame" collid="1">
    <name sortindex="1">Catan</name>
    <yearpublished>1995</yearpublished>
    <status own="1" prevowned="0" fortrade="0" want="0" wanttoplay="0" wanttobuy="0" wishlist="0" preordered="0" lastmodified="2024-01-01 10:00:00" />
    <numplays>3</numplays>
    <comment>Sleeved</comment>
  </item>
  <item objecttype="thing" objectid="822" subtype="boardgame" collid="2">
    <name sortindex="1">Carcassonne</name>
    <status own="0" prevowned="0" fortrade="0" want="0" wanttoplay="0" wanttobuy="0" wishlist="1" wishlistpriority="2" preordered="0" lastmodified="2024-01-01 10:00:00" />
    <numplays>0</numplays>
    <wishlistcomment>For the holidays</wishlistcomment>
  </item>
</items>
"""

ERROR_XML = """<?xml version="1.0" encoding="utf-8" standalone="yes"?>
<errors><error><message>Invalid username specified</message></error></errors>
"""


def test_parse_collection_xml():
    records = parse_collection_xml(COLLECTION_XML)

    assert [r["objectid"] for r in records] == ["13", "822"]
    catan, carcassonne = records
    assert catan["name"] == "Catan"
    assert catan["yearpublished"] == "1995"
    assert catan["status"]["own"] == "1"
    assert catan["comment"] == "Sleeved"
    assert catan["wishlistcomment"] is None
    assert carcassonne["status"]["wishlistpriority"] == "2"
    assert carcassonne["wishlistcomment"] == "For the holidays"


def test_parse_empty_collection():
    assert parse_collection_xml('<items totalitems="0"></items>') == []


def test_error_document_is_a_transport_failure():
    with pytest.raises(TransportFailure, match="Invalid username"):
        parse_collection_xml(ERROR_XML)


def test_pending_is_retried_with_fixed_backoff(settings):
    http = FakeHttp([FakeResponse(202), FakeResponse(202), FakeResponse(200, COLLECTION_XML)])
    sleeps = []

    records = fetch_existing_state("alice", settings, http=http, sleep=sleeps.append)

    assert len(http.calls) == 3
    assert sleeps == [5.0, 5.0]
    assert len(records) == 2
    url, params, _ = http.calls[0]
    assert url == "https://boardgamegeek.com/xmlapi2/collection"
    assert params == {"username": "alice"}


def test_pending_beyond_the_cap_is_a_transport_failure(settings):
    http = FakeHttp([FakeResponse(202)] * settings.max_pending_attempts)
    sleeps = []

    with pytest.raises(TransportFailure, match="pending"):
        fetch_existing_state("alice", settings, http=http, sleep=sleeps.append)

    assert len(http.calls) == settings.max_pending_attempts
    assert len(sleeps) == settings.max_pending_attempts - 1


def test_bad_gateway_is_fatal_without_retry(settings):
    http = FakeHttp([FakeResponse(502)])

    with pytest.raises(TransportFailure, match="502"):
        fetch_existing_state("alice", settings, http=http, sleep=lambda s: None)

    assert len(http.calls) == 1


def test_connection_error_is_a_transport_failure(settings):
    http = FakeHttp([requests.ConnectionError("boom")])

    with pytest.raises(TransportFailure):
        fetch_existing_state("alice", settings, http=http, sleep=lambda s: None)


def test_build_session_sends_token_when_configured(settings):
    session = build_session(replace(settings, api_token="secret"))
    assert session.headers["Authorization"] == "Bearer secret"
    assert "Authorization" not in build_session(settings).headers
