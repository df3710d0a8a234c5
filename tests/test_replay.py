import pytest

from bayeux.channel import Channel
from bayeux.message import Message
from bayeux.replay import EXTENSION_NAME, Extension, MapStorage, MessageData


def _supported_extension(store):
    e = Extension(store)
    e.incoming(Message(channel="/meta/handshake", ext={EXTENSION_NAME: True}))
    return e


def test_new_is_unsupported():
    e = Extension(MapStorage())
    assert e.is_supported() is False


def test_outgoing_meta_handshake():
    e = Extension(MapStorage())
    e.registered(EXTENSION_NAME, None)
    m = Message(channel="/meta/handshake")
    assert m.ext is None
    e.outgoing(m)
    assert m.ext[EXTENSION_NAME] is True


def test_supported_outgoing_meta_subscribe():
    e = _supported_extension(MapStorage({"/foo/bar": 1234}))
    m = Message(channel="/meta/subscribe")
    e.outgoing(m)
    assert m.ext[EXTENSION_NAME] == {"/foo/bar": 1234}


def test_unsupported_outgoing_meta_subscribe():
    e = Extension(MapStorage({"/foo/bar": 1}))
    m = Message(channel="/meta/subscribe")
    e.outgoing(m)
    assert m.ext is None or EXTENSION_NAME not in m.ext


def test_detects_it_is_supported():
    e = Extension(MapStorage())
    e.registered(EXTENSION_NAME, None)
    e.incoming(Message(channel="/meta/handshake", ext={EXTENSION_NAME: True}))
    assert e.is_supported() is True


def test_handshake_without_ext_stays_unsupported():
    e = Extension(MapStorage())
    e.incoming(Message(channel="/meta/handshake"))
    assert e.is_supported() is False


def test_incoming_meta_unsubscribe_removes_channel():
    store = MapStorage({"/foo/bar": 1, "/bar/*": 2, "/": 3})
    e = Extension(store)
    e.incoming(Message(channel="/meta/unsubscribe", subscription=Channel("/")))
    assert store.get("/") is None
    assert store.get("/foo/bar") == 1


@pytest.mark.parametrize("channel", ["/meta/connect", "/meta/subscribe", "/service/foo"])
def test_incoming_edges(channel):
    store = MapStorage({"/foo/bar": 1})
    e = Extension(store)
    e.incoming(Message(channel=channel))
    assert store.as_map() == {"/foo/bar": 1}
    assert e.is_supported() is False


@pytest.mark.parametrize(
    "data, want",
    [
        ('{"event": {"replayId": 2, "body": "data"}}', 2),
        ('{"event": {"replayId": "abc", "body": "data"}}', 1),
        ('{"not_an_event": {"replay": 2, "body": "data"}}', 1),
        ('{"event": [{"replay": 2, "body": "data"}]}', 1),
        ('{"event": {"body": "data"]}', 1),
        ("just some plain text", 1),
    ],
)
def test_incoming_updates_replay_id_store(data, want):
    store = MapStorage({"/foo/bar": 1})
    e = Extension(store)
    e.incoming(Message(channel="/foo/bar", data=MessageData(data=data).to_dict()))
    assert store.get("/foo/bar") == want


def test_registered_and_unregistered_change_nothing():
    store = MapStorage({"/foo/bar": 5})
    e = Extension(store)
    e.registered(EXTENSION_NAME, None)
    e.unregistered()
    assert e.is_supported() is False
    assert store.as_map() == {"/foo/bar": 5}


def test_map_storage_set():
    s = MapStorage()
    s.set("/foo/bar", 1)
    assert s.get("/foo/bar") == 1


def test_empty_map_storage_get():
    assert MapStorage().get("/foo/bar") is None


def test_map_storage_get():
    assert MapStorage({"/foo/bar": 1}).get("/foo/bar") == 1


def test_map_storage_delete():
    s = MapStorage({"/foo/bar": 1})
    s.delete("/foo/bar")
    assert s.get("/foo/bar") is None


def test_map_storage_as_map_is_copy():
    s = MapStorage({"/foo/bar": 1234})
    m = s.as_map()
    assert m == {"/foo/bar": 1234}
    m["/other"] = 1
    assert s.get("/other") is None


def test_message_data_round_trip():
    md = MessageData(data="payload", last=True, meta={"k": "v"})
    assert MessageData.from_dict(md.to_dict()) == md


def test_message_data_rejects_non_string_data():
    with pytest.raises(ValueError):
        MessageData.from_dict({"data": 5})