# mediakit

Pure-Python building blocks for moving audio and video between streaming
protocols and containers.

## What is inside

- `mediakit.packet`: a small RTP `Packet` dataclass and a `Sequencer` that
  hands out 16-bit sequence numbers from a random start.
- `mediakit.h265.helper`: NAL unit helpers for access units in
  length-prefixed form: `nalu_type`, `is_keyframe`, `types`, and
  `get_parameter_set`, which pulls VPS, SPS and PPS out of an SDP fmtp line.
- `mediakit.h265.payloader`: an RFC 7798 `Payloader` that turns one access
  unit into RTP payloads (single NAL units, aggregation packets and
  fragmentation units, optionally with DONL fields), plus the `NALUHeader`
  and `FragmentationUnitHeader` field views.
- `mediakit.iso.movie`: `Movie`, a writer for ISO BMFF / fragmented MP4
  atoms: init segments, `moof`/`mdat` fragments, and H.264/H.265, AAC, MP3,
  Opus, PCMU and PCMA sample descriptions. Boxes can be opened with
  `start_atom`/`end_atom` or with the `atom` context manager.
- `mediakit.mjpeg.rfc2435`: RFC 2435 quantization tables (`make_tables`) and
  JPEG header generation (`make_headers`, `make_quant_header`,
  `make_huffman_header`).
- `mediakit.mjpeg.rtp`: RTP/JPEG wrappers `rtp_depay` (rebuilds whole JPEG
  images) and `rtp_pay` (splits images into packets), and `transcode`, which
  re-encodes a JPEG into baseline 4:2:0 form using Pillow.
- `mediakit.flv.amf0`: an `AMF0` reader for script data such as
  `onMetaData`; malformed data raises `AMF0Error`.
- `mediakit.flv.tags`: `read_tag` and `parse_header` for FLV tags, giving a
  `Tag` with its audio or video header fields; malformed tags raise
  `TagError`.
- `mediakit.hap`: HomeKit Accessory Protocol pieces:
  - `character.Character` with JSON conversion, TLV8/bool value encoding and
    EVENT notifications to listeners,
  - `accessory.Accessory` and `accessory.Service` lookups,
  - `helpers.generate_id`, `helpers.generate_uuid`,
    `helpers.unmarshal_event`,
  - `http.write_status_code`, `http.write_response`, `http.write_chunked`
    for raw responses,
  - `secure.Secure`, the ChaCha20-Poly1305 framed session channel.

Wrappers follow one shape: a wrapper takes a `push` callable that receives
`Packet` objects and returns a new callable to feed packets into.

## Installation

```
pip install .
```

Install the test dependencies with `pip install .[test]`, then run `pytest`.

## Examples

Split an H.265 access unit (NAL units with 4-byte length prefixes) into RTP
payloads:

```python
from mediakit.h265.payloader import Payloader

payloads = Payloader().payload(1200, access_unit)
```

Build an MP4 init segment by hand:

```python
from mediakit.iso.movie import Movie

mv = Movie()
mv.write_file_type()
with mv.atom("moov"):
    mv.write_movie_header()
    mv.write_audio_track(1, "PCMA", 8000, 1, b"")
init = mv.bytes()
```

Rebuild JPEG frames from RTP/JPEG packets:

```python
from mediakit.mjpeg.rtp import rtp_depay

frames = []
write = rtp_depay()(lambda packet: frames.append(packet.payload))
for packet in rtp_packets:
    write(packet)
```

Read FLV metadata:

```python
from mediakit.flv.amf0 import AMF0

meta = AMF0(script_tag_data).read_meta_data()
```

Generate a HomeKit accessory identifier:

```python
from mediakit.hap.helpers import generate_id

print(generate_id("my camera"))
```

## What it does not do

- There is no H.265 RTP depacketizer: the package cannot reassemble H.265
  RTP packets into access units, and has no ready-made H.265 packet wrappers;
  use `Payloader` directly to produce payloads.
- It opens no network connections. There is no HomeKit client or accessory
  server, no pair-setup or pair-verify exchange and no mDNS discovery;
  `Secure` works over a connection object you supply, after you have a shared
  key.
- There is no HTTP-FLV client and no FLV file-header parsing; `read_tag`
  reads tags from a stream positioned after the file header.
- It offers no command-line program.