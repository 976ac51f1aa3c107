import http.client
import json
import logging
import typing as t
import urllib.parse

import urllib3
from urllib3.exceptions import HTTPError

from rinth.config import Config
from rinth.config import wrap_config_param
from rinth.downloading import open_url
from rinth.downloading import release_response
from rinth.errors import DecodeError
from rinth.errors import NetworkError
from rinth.modmeta import RemoteMod
from rinth.modmeta import VersionRecord

logger = logging.getLogger(__name__)


class SearchHit(t.TypedDict):
    mod_id: str
    title: str
    author: str
    description: str


class SearchResponse(t.TypedDict):
    hits: t.List[SearchHit]


class VersionFile(t.TypedDict):
    url: str
    filename: str


class VersionEntry(t.TypedDict):
    game_versions: t.List[str]
    loaders: t.List[str]
    files: t.List[VersionFile]


def registry_timeout(config: Config):
    return urllib3.Timeout(
        connect=config.downloading.connect_timeout,
        read=config.downloading.read_timeout,
    )


def fetch_json(
    config: Config, path: str, fields: t.Optional[t.Mapping[str, str]] = None
) -> t.Any:
    """GET a registry endpoint and decode its JSON body.

    :raises NetworkError: if the registry could not be reached.
    :raises DecodeError: if the response body is not JSON.
    """
    url = config.downloading.registry_url.rstrip("/") + path
    response = open_url(url, fields=fields, timeout=registry_timeout(config))
    try:
        body = response.read()
    except (HTTPError, http.client.HTTPException, OSError) as e:
        # the body can still fail after the status line was received
        raise NetworkError(response.url, e)
    finally:
        release_response(response)

    try:
        return json.loads(body)
    except ValueError as e:
        raise DecodeError(response.url, e)


@wrap_config_param
def fetch_mod_search(config: Config, query: str) -> t.List[RemoteMod]:
    """Search the registry. Ids of the returned mods are normalized."""
    data: SearchResponse = fetch_json(config, "/mod", {"query": query})
    try:
        hits = [RemoteMod.from_hit(t.cast(t.Dict[str, t.Any], hit)) for hit in data["hits"]]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"search results for '{query}'", repr(e))
    logger.debug(f"{len(hits)} search result(s) for '{query}'.")
    return hits


@wrap_config_param
def fetch_mod_versions(config: Config, mod_id: str) -> t.List[VersionRecord]:
    """List the published versions of a mod, in registry order.

    An empty list is a valid result.
    """
    path = "/mod/{}/version".format(urllib.parse.quote(mod_id, safe=""))
    data: t.List[VersionEntry] = fetch_json(config, path)
    if not isinstance(data, list):
        raise DecodeError(f"versions of {mod_id}", "expected a JSON array")
    try:
        records = [VersionRecord.from_dict(t.cast(t.Dict[str, t.Any], entry)) for entry in data]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"versions of {mod_id}", repr(e))
    logger.debug(f"{len(records)} version(s) published for {mod_id}.")
    return records
