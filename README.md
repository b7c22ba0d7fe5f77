# nezhadash

The in-memory core of a server monitoring dashboard, as a plain Python
library. Agents report host information, system state and service probe
results. The library keeps track of them and turns them into API
responses, traffic records and notifications.

## Modules

- **`nezhadash.servers`**: `ServerRegistry` holds `Server` objects by id,
  by secret and by tag. `load(servers)` replaces the contents with fresh
  copies, each with an empty `Host` and `HostState`. `resort()` orders
  `sorted_servers` and `sorted_servers_for_guest` by `display_index`,
  highest first, and then by `id`. The guest list leaves out servers with
  `hide_for_guest` set. `authenticate(metadata)` reads `client_secret`
  from the request metadata and returns the matching server id. It raises
  `AuthenticationError` when the metadata is missing or the secret is
  unknown.
- **`nezhadash.servicesentinel`**: `ServiceSentinel` collects `TaskResult`
  reports through `report(result, reporter)` for the monitors registered
  with `on_monitor_update(monitor)`. It keeps today's counters, a window
  of the 30 most recent samples (one at most every 30 seconds) and
  30-day `ServiceItem` statistics. `load_stats()` folds today's counts
  into those statistics and returns them. `refresh_monthly_status()`
  moves the window forward by one day.

  Through its `NotificationCenter` the sentinel sends four kinds of
  alert: latency beyond a monitor's bounds, a change of state, an SSL
  certificate that expires within seven days, and an SSL certificate
  that has changed. When a service fails or recovers, it calls the
  optional `dispatch(task_ids, server_id)` callback. Averaged ping and
  window results are appended to its `histories` list. The attributes
  `clock`, `avg_ping_count` and `max_tcp_ping_value` can be adjusted.
  `get_status_code(percent)` maps an availability percentage to a
  `StatusCode`.
- **`nezhadash.notification`**: `NotificationCenter` groups `Notification`
  targets by tag. A notification without a tag joins the `default` group.
  `send(tag, desc, mute_label, server)` calls each target's `sender`
  callable and returns `False` when the message is muted. A mute label
  allows one message at once; after that the wait starts at 15 minutes
  and doubles with each message, up to once a day. `unmute(tag, label)`
  resets the wait. `MuteLabel` builds the labels.
- **`nezhadash.api`**: `ServerAPI` builds `ServerStatusResponse` and
  `ServerInfoResponse` objects, each with a `to_dict()` method. It
  covers all servers, the servers of a tag, or a list of ids.
- **`nezhadash.transfer`**: `record_transfer_hourly_usage(registry, now)`
  returns the `Transfer` records of traffic used since the last snapshot,
  stamped with the start of the hour, and moves the snapshots forward.
  `desensitize_for_notification(ip, plain)` masks an IP unless `plain` is
  true.
- **`nezhadash.nat`**: `NATCache` maps domains to `NAT` entries.
- **`nezhadash.ddns`**: `split_domain_soa(domain)` finds a domain's zone by
  sending SOA queries to a fixed set of public resolvers. `Provider`
  updates the A and AAAA records of every domain in a `DDNSProfile`. It
  retries each domain up to `max_retries` times and sends the records
  through a record setter such as `DummyProvider` or `WebhookProvider`.
- **`nezhadash.webhook`**: `WebhookProvider` sends one HTTP request per
  record. It fills in the `#ip#`, `#domain#`, `#type#`, `#record#`,
  `#access_id#` and `#access_secret#` placeholders in the URL query, the
  headers and the body. The body is JSON or form-encoded, chosen by
  `RequestType`, and the method is chosen by `WebhookMethod`.
- **`nezhadash.streams`**: `IOStreamWrapper` and `MessageConn` turn
  message-based connections into byte streams with `read`, `write` and
  `close`. `MessageConn` adds a leading zero byte to each text message.
- **`nezhadash.relay`**: `StreamRelay` pairs a user connection with an
  agent connection under a stream id. `start_stream` copies data both
  ways until one side ends.
- **Helpers**: `nezhadash.utils` (IP masking, splitting dual-stack
  addresses, random strings), `nezhadash.jsonpath` (dotted-path lookups
  and flat string maps), `nezhadash.hybridfs` (bundled files laid over
  a local directory) and `nezhadash.http` (`requests` sessions with a
  10-minute default timeout).

## Examples

```python
from nezhadash.utils import ip_desensitize, split_ip_addr

ip_desensitize("103.80.236.249/d5ce:d811:cdb8:067a:a873:2076:9521:9d2d")
# '103.****.249/d5ce:d811:****:9521:9d2d'

split_ip_addr("1.2.3.4/::1")
# ('1.2.3.4', '::1', '1.2.3.4')
```

```python
from nezhadash.notification import MuteLabel

label = MuteLabel.server_incident(1, 2)               # 'bf::sei-1-2'
MuteLabel.append_notification_tag(label, "default")   # 'bf::sei-1-2:default'
```

```python
from nezhadash.jsonpath import get_path, parse_string_map

get_path('{"a": {"b": [10, 20]}}', "a.b.1")   # 20
get_path('{"a": {"b": [10, 20]}}', "a.b.#")   # 2
parse_string_map('{"ip": "1.1.1.1", "record": "A"}')
# {'ip': '1.1.1.1', 'record': 'A'}
```

## Errors

- `PathNotFoundError` and `WrongTypeError` from `nezhadash.jsonpath`.
- `SOANotFoundError` when no zone is found for a domain.
- `RuntimeError` from `WebhookProvider.set_records` when a request cannot
  be prepared or sent.
- `StreamNotFoundError` and `StreamTimeoutError` from `StreamRelay`, and
  `RuntimeError` when a side of a stream connects twice.
- `AuthenticationError` when an agent is rejected.
- `KeyError` from `ServiceSentinel.on_monitor_delete` for an unknown
  monitor.

## What it does not do

This is a library of in-memory state and logic only. It has no command,
no web server, no pages and no RPC service. It has no database: results
stay in memory, for example in `ServiceSentinel.histories`. It has no
scheduler and no configuration file loading. It has no alert-rule engine
and no built-in notification channels; each `Notification` needs a
`sender` callable. The caller supplies the data and drives the periodic
calls.