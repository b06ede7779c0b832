# idevtools

Message formats and request/response helpers for iOS device services, in
plain Python. The package builds the requests these services expect and
interprets their answers; you provide the transport (a socket to usbmuxd, a
service connection, a file) and pass bytes or parsed plists in and out.

## Installation

```
pip install idevtools
```

For running the tests:

```
pip install "idevtools[test]"
pytest
```

## Modules

### DTX

- `idevtools.dtx_message`: the `Message` dataclass with `PayloadHeader` and
  `AuxiliaryHeader`, the `MessageType` enum, `encode(identifier,
  conversation_index, channel_code, expects_reply, message_type, payload,
  auxiliary)` and `build_ack_message(msg)`, which builds the 48 byte
  acknowledgement for a message. `Message.debug_string()` describes a message
  with its payload and auxiliary.
- `idevtools.dtx_decoder`:
  - `read_message(stream)` reads one whole message from a blocking binary
    stream and raises `EOFError` if the stream ends early.
  - `decode_non_blocking(data)` decodes one message from the front of a
    buffer and returns `(message, leftover_bytes)`.
  - `decompress(data)` unpacks LZ4-compressed payloads that are made of
    `bv41` chunks.

  Payloads are loaded as plists. For an NSKeyedArchiver archive the root
  object is returned as it is stored in the archive, and any references
  inside it are left unresolved. Payloads of type `UNKNOWN_TYPE_ONE` and
  `LZ4_COMPRESSED` are returned as raw bytes.
- `idevtools.dtx_errors`: `DtxError` and its subclasses `OutOfSyncError`
  (the magic bytes are wrong) and `IncompleteError` (more bytes are needed).
  The helpers `is_out_of_sync(err)` and `is_incomplete(err)` test for them.
- `idevtools.primitive_dictionary`: `PrimitiveDictionary`, the container for
  auxiliary arguments, with `add_int32`, `add_bytes`, `to_bytes` and
  `arguments`. It also has `decode_auxiliary(data)` and the `PrimitiveType`
  enum.
- `idevtools.fragment_decoder`: `FragmentDecoder` collects the fragments of
  one message. `add_fragment` adds a fragment, `has_finished` reports whether
  all have arrived, and `extract` returns the reassembled message bytes.

### usbmux and lockdown

- `idevtools.usbmux_messages`: `read_devices_request()` and
  `listen_request()` build requests. `device_list_from_bytes(data)` parses a
  `DeviceList`; `str()` gives one udid per line and `to_json_map()` gives
  `{"deviceList": [...]}`. `attached_from_bytes(data)` parses an
  `AttachedMessage`, which has `is_attached`, `is_detached` and
  `device_entry`.
- `idevtools.lockdown_values`:
  - `get_value_request` and `set_value_request` build requests.
  - `parse_value_response` returns a `ValueResponse`.
  - `check_set_value_response`, `product_version_from_response` and
    `parse_all_values` interpret answers and raise `LockdownValueError` on
    failure.
- `idevtools.lockdown_settings`:
  - `AccessibilitySetting` covers AssistiveTouch, VoiceOver and Zoom.
    `accessibility_request(setting, enabled)` builds the request and
    `interpret_accessibility_value(setting, value)` reads the answer.
  - `LanguageConfiguration` works with `language_requests(config)` and
    `language_from_values(...)`.
  - `time_requests(time_zone, timestamp=None)` uses the current host time
    when no timestamp is given.

### Other services

- `idevtools.house_arrest`: `vend_container_request(bundle_id)` and
  `check_vend_response(data)`, which raises `VendContainerError`.
- `idevtools.image_downloader`:
  - `match_available(version)` picks the best developer disk image version.
    An exact match wins; otherwise it takes the highest available version
    below the requested one.
  - `find_image` and `look_for_image` search a directory for an image
    already there.
  - `download_image(version, base_dir, base_url)` reuses an image already
    present, or downloads the image and its signature from
    `<base_url>/<image version>/`. No download location is built in.
- `idevtools.image_mounter`:
  - `validate_path_and_load_signature(image_path)` checks the image and
    loads its signature.
  - `lookup_image_request`, `upload_request`, `mount_request` and
    `hangup_request` build requests.
  - `parse_image_list(response, product_version)` and
    `check_status(response, expected)` read answers and raise
    `ImageMounterError` on failure.
- `idevtools.installation_proxy`:
  - `browse_request(application_type, show_launch_prohibited_apps)` builds a
    Browse request.
  - `parse_browse_response(data)` returns a `BrowseResponse`, and
    `assemble_app_infos(responses)` merges the chunks into one list of
    `AppInfo`.
  - `uninstall_request(bundle_id)` builds the request and
    `check_uninstall_finished(response)` reads the answer, raising
    `UninstallError` on failure.
- `idevtools.instruments`:
  - `decode_profile_types` and `decode_profiles` decode condition inducer
    profiles.
  - `verify_profile_and_type(types, type_id, profile_id)` checks that a
    profile type and profile exist.
  - `map_to_process_info(processes)` returns a list of `ProcessInfo`.
  - `extract_map_payload(payload)` returns the payload's single dictionary.
  - The module also holds the service and channel name constants.

## Example

```python
from idevtools.dtx_message import encode, MessageType
from idevtools.dtx_decoder import decode_non_blocking
from idevtools.primitive_dictionary import PrimitiveDictionary

aux = PrimitiveDictionary()
aux.add_int32(5)
data = encode(1, 0, 0, True, MessageType.METHOD_INVOCATION, b"", aux)

msg, rest = decode_non_blocking(data)
assert msg.identifier == 1 and msg.expects_reply and rest == b""
assert msg.auxiliary.arguments == [5]
```

```python
from idevtools.image_downloader import match_available

match_available("15.4.1")   # "15.4"
```

## What this package does not do

- It opens no device connections. It has no usbmuxd client, no lockdown
  sessions, no pairing or SSL handling, and no DTX channel management or
  message dispatching.
- It does not encode NSKeyedArchiver payloads, so you must archive method
  selectors and arguments yourself.
- It has no command-line tool.