# bayeux

A client for servers that speak the Bayeux protocol (as used by CometD and
streaming APIs built on it) over HTTP long-polling. It has two layers:

* `bayeux.bayeux_client.BayeuxClient`, a low-level protocol client which
  performs the `/meta/handshake`, `/meta/connect`, `/meta/subscribe`,
  `/meta/unsubscribe` and `/meta/disconnect` exchanges and tracks the
  connection state;
* `bayeux.client.Client`, a high-level client which runs the long-polling
  loop on a background thread and hands the messages of each subscribed
  channel to the receiver you gave for it.

Around these sit the message model (`bayeux.message`), channel handling
(`bayeux.channel`), request builders (`bayeux.message_builders`), a
connection state machine (`bayeux.state_machine`), the exceptions
(`bayeux.errors`, all derived from `BayeuxError`), and two extensions:
replay-id tracking (`bayeux.replay`) and a static bearer-token transport
(`bayeux.salesforce`).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Channels

`Channel` is a `str` subclass.

```python
from bayeux.channel import Channel, ChannelType

Channel("/meta/connect").type() is ChannelType.META   # True
Channel("/service/chat").type() is ChannelType.SERVICE  # True
Channel("/foo/*").match("/foo/bar")                   # True
Channel("/foo/*").match("/foo/bar/baz")               # False
Channel("/foo/**").match("/foo/bar/baz")              # True
Channel("/foo/*/bar").is_valid()                      # False: wildcards only at the end
Channel("foo/bar").is_valid()                         # False: must start with "/"
```

The meta channels are available as `META_HANDSHAKE`, `META_CONNECT`,
`META_SUBSCRIBE`, `META_UNSUBSCRIBE` and `META_DISCONNECT`.

## Building requests

Builders validate what goes into a request and raise an error from
`bayeux.errors` when something is missing or wrong (for example
`BadConnectionTypeError`, `BadConnectionVersionError`,
`InvalidChannelError`, `MissingClientIDError`, `EmptyCollectionError`).

```python
from bayeux.message_builders import SubscribeRequestBuilder

builder = SubscribeRequestBuilder()
builder.add_subscription("/foo/**")
builder.add_subscription("/foo/**")   # duplicates are dropped
builder.add_subscription("/bar/foo")
builder.add_client_id("Un1q31d3nt1f13r")

payload = [message.to_dict() for message in builder.build()]
# [{"channel": "/meta/subscribe", "clientId": "Un1q31d3nt1f13r", "subscription": "/foo/**"},
#  {"channel": "/meta/subscribe", "clientId": "Un1q31d3nt1f13r", "subscription": "/bar/foo"}]
```

`HandshakeRequestBuilder` (`add_version`, `add_minimum_version`,
`add_supported_connection_type`), `ConnectRequestBuilder`
(`add_client_id`, `add_connection_type`), `UnsubscribeRequestBuilder` and
`DisconnectRequestBuilder` work the same way. The known connection types
are `long-polling`, `callback-polling` and `iframe`.

## Messages

`Message.from_dict` and `Message.to_dict` convert to and from the JSON
objects on the wire; `to_dict` leaves out empty fields. A few helpers
interpret the fields:

* `Message.parse_error()` splits an error string such as
  `"403:xj3sjdsjdsjad,/foo/bar:Subscription denied"` into a `MessageError`
  with `error_code`, `error_args` and `error_message`, raising
  `MessageUnparsableError` or `ValueError` if it cannot;
* `Message.timestamp_as_time()` parses a `YYYY-MM-DDThh:mm:ss.ss`
  timestamp into a UTC `datetime`;
* `Message.get_ext(create)` returns the `ext` mapping, creating it when
  asked to;
* `Advice.should_retry()`, `Advice.should_handshake()` and
  `Advice.must_not_retry_or_handshake()` read the reconnect advice, and
  `Advice.timeout_as_duration()` / `Advice.interval_as_duration()` return
  the millisecond fields as `timedelta`s.

## The low-level client

```python
from bayeux.bayeux_client import BayeuxClient

with BayeuxClient("https://localhost:8080/cometd") as bayeux:
    bayeux.handshake()
    bayeux.subscribe(["/foo/bar"])
    for message in bayeux.connect():
        print(message.channel, message.data)
    bayeux.disconnect()
```

`BayeuxClient` takes either an `httpx.Client` (`http_client=`) or an
`httpx` transport (`transport=`), and an optional `logger`. An invalid
server address raises `ValueError`. Failures are raised as
`HandshakeFailedError`, `ConnectionFailedError`,
`SubscriptionFailedError`, `UnsubscribeFailedError` or
`DisconnectFailedError`, each wrapping the underlying cause; a reply
other than HTTP 200 is reported as `BadResponseError`. Calls other than
`handshake` raise `ClientNotConnectedError` (wrapped as above) until a
handshake has succeeded.

## The high-level client

```python
import queue

from bayeux.client import Client

client = Client("https://localhost:8080/cometd")
received = queue.Queue()

errors = client.start()
client.subscribe("/foo/bar", received.put)

batch = received.get()          # a list of Message objects from /foo/bar
for message in batch:
    print(message.channel, message.data)

client.disconnect()
```

A receiver is any callable that takes a list of messages. `start()`
returns a queue on which an error that stops the background thread is
put. The client handshakes, then long-polls `/meta/connect`, follows the
server's interval and re-handshake advice, and groups consecutive
messages of the same channel into one batch for that channel's receiver.
Subscribe and unsubscribe requests (`client.unsubscribe(channel)`) are
queued and sent from the background thread.

To stop, either call `client.disconnect()`, which sends
`/meta/disconnect` and ends the loop, or pass a `threading.Event` to
`start(stop_event)` and set it, after which the loop ends and the client
disconnects on its own.

## Extensions

An extension implements `bayeux.extension.MessageExtender` (`outgoing`,
`incoming`, `registered`, `unregistered`) and is added with
`use_extension` on either client. Registering the same extension twice
raises `AlreadyRegisteredError`.

### Replay ids

`bayeux.replay.Extension` announces replay support during the handshake,
records the latest `replayId` seen on each broadcast channel in an
`IDStore`, forgets a channel when an unsubscribe reply for it arrives, and
sends the stored ids along with subscribe requests once the server has
confirmed support. `MapStorage` is a thread-safe in-memory store.

```python
from bayeux.replay import Extension, MapStorage

client.use_extension(Extension(MapStorage()))
```

### Static token authentication

`bayeux.salesforce.StaticTokenAuthenticator` is an `httpx` transport. On
requests to hosts ending in `salesforce.com` it adds an
`Authorization: Bearer <token>` header and the cookies set by the
previous response; other requests pass through unchanged. An empty token
raises `ValueError` for such hosts.

```python
from bayeux.client import Client
from bayeux.salesforce import StaticTokenAuthenticator

client = Client(
    "https://example.my.salesforce.com/cometd/59.0",
    transport=StaticTokenAuthenticator("token"),
)
```

## Command line

`bayeux-listen` connects to a server, subscribes to the channels named on
the command line and logs every message it receives:

```
bayeux-listen --protocol https --hostname localhost --port 8080 --path /cometd /foo/bar /foo/baz
```

Options (each also accepted with a single dash): `--protocol` (default
`https`), `--hostname`, `--port` (default 80), `--path`, `--buffer`
(number of batches to buffer, default 100) and `--loglevel` (`debug`,
`info`, `warn` or `error`, default `error`; anything else logs only
critical messages). Messages are logged at info level to standard error.
The command exits with status 1 if the client cannot be created, 2 when
the client stops on an error, and 130 on Ctrl-C.

## What it does not do

The package only receives: neither client can publish messages to a
channel. The only transport is HTTP long-polling.