"""Writer for ISO base media (fragmented MP4) boxes."""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

CODEC_H264 = "H264"
CODEC_H265 = "H265"
CODEC_AAC = "MPEG4-GENERIC"
CODEC_MP3 = "MPA"
CODEC_OPUS = "OPUS"
CODEC_PCMU = "PCMU"
CODEC_PCMA = "PCMA"

FTYP = "ftyp"
MOOV = "moov"
MOOV_MVHD = "mvhd"
MOOV_TRAK = "trak"
MOOV_TRAK_TKHD = "tkhd"
MOOV_TRAK_MDIA = "mdia"
MOOV_TRAK_MDIA_MDHD = "mdhd"
MOOV_TRAK_MDIA_HDLR = "hdlr"
MOOV_TRAK_MDIA_MINF = "minf"
MOOV_TRAK_MDIA_MINF_VMHD = "vmhd"
MOOV_TRAK_MDIA_MINF_SMHD = "smhd"
MOOV_TRAK_MDIA_MINF_DINF = "dinf"
MOOV_TRAK_MDIA_MINF_DINF_DREF = "dref"
MOOV_TRAK_MDIA_MINF_DINF_DREF_URL = "url "
MOOV_TRAK_MDIA_MINF_STBL = "stbl"
MOOV_TRAK_MDIA_MINF_STBL_STSD = "stsd"
MOOV_TRAK_MDIA_MINF_STBL_STTS = "stts"
MOOV_TRAK_MDIA_MINF_STBL_STSC = "stsc"
MOOV_TRAK_MDIA_MINF_STBL_STSZ = "stsz"
MOOV_TRAK_MDIA_MINF_STBL_STCO = "stco"
MOOV_MVEX = "mvex"
MOOV_MVEX_TREX = "trex"
MOOF = "moof"
MOOF_MFHD = "mfhd"
MOOF_TRAF = "traf"
MOOF_TRAF_TFHD = "tfhd"
MOOF_TRAF_TFDT = "tfdt"
MOOF_TRAF_TRUN = "trun"
MDAT = "mdat"

TKHD_TRACK_ENABLED = 0x0001
TKHD_TRACK_IN_MOVIE = 0x0002

TFHD_DEFAULT_SAMPLE_DURATION = 0x000008
TFHD_DEFAULT_SAMPLE_SIZE = 0x000010
TFHD_DEFAULT_SAMPLE_FLAGS = 0x000020
TFHD_DEFAULT_BASE_IS_MOOF = 0x020000

TRUN_DATA_OFFSET = 0x000001


class Movie:
    """Builds box-structured MP4 data in memory."""

    def __init__(self) -> None:
        self._b = bytearray()
        self._start: List[int] = []

    def bytes(self) -> bytes:
        """Return the data written so far."""
        return bytes(self._b)

    def __len__(self) -> int:
        return len(self._b)

    # --- box structure ---------------------------------------------------

    @contextmanager
    def atom(self, name: str) -> Iterator["Movie"]:
        """Open a box for the duration of the block and close it afterwards."""
        self.start_atom(name)
        yield self
        self.end_atom()

    def start_atom(self, name: str) -> None:
        """Open a box; its size is filled in by end_atom."""
        self._start.append(len(self._b))
        self._b += b"\x00\x00\x00\x00"
        self._b += name.encode()

    def end_atom(self) -> None:
        """Close the innermost open box, writing its size."""
        if not self._start:
            raise ValueError("no open atom to end")
        i = self._start.pop()
        size = (len(self._b) - i) & 0xFFFFFFFF
        self._b[i:i + 4] = size.to_bytes(4, "big")

    # --- primitives ------------------------------------------------------

    def write(self, b: Optional[bytes]) -> None:
        if b:
            self._b += b

    def write_bytes(self, *args: int) -> None:
        self._b += bytes(v & 0xFF for v in args)

    def write_string(self, s: str) -> None:
        self._b += s.encode()

    def skip(self, n: int) -> None:
        self._b += bytes(n)

    def write_uint16(self, v: int) -> None:
        self._b += (v & 0xFFFF).to_bytes(2, "big")

    def write_uint24(self, v: int) -> None:
        self._b += (v & 0xFFFFFF).to_bytes(3, "big")

    def write_uint32(self, v: int) -> None:
        self._b += (v & 0xFFFFFFFF).to_bytes(4, "big")

    def write_uint64(self, v: int) -> None:
        self._b += (v & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big")

    def write_float16(self, f: float) -> None:
        """Write an 8.8 fixed-point number."""
        frac, whole = math.modf(f)
        self.write_bytes(int(whole), int(frac * 256))

    def write_float32(self, f: float) -> None:
        """Write a 16.16 fixed-point number."""
        frac, whole = math.modf(f)
        self.write_uint16(int(whole))
        self.write_uint16(int(frac * 65536))

    def write_matrix(self) -> None:
        self.write_uint32(0x00010000)
        self.skip(12)
        self.write_uint32(0x00010000)
        self.skip(12)
        self.write_uint32(0x40000000)

    # --- boxes -----------------------------------------------------------

    def write_file_type(self) -> None:
        with self.atom(FTYP):
            self.write_string("iso5")
            self.write_uint32(512)
            self.write_string("iso5")
            self.write_string("iso6")
            self.write_string("mp41")

    def write_movie_header(self) -> None:
        with self.atom(MOOV_MVHD):
            self.skip(1)  # version
            self.skip(3)  # flags
            self.skip(4)  # create time
            self.skip(4)  # modify time
            self.write_uint32(1000)  # time scale
            self.skip(4)  # duration
            self.write_float32(1)  # preferred rate
            self.write_float16(1)  # preferred volume
            self.skip(10)  # reserved
            self.write_matrix()
            self.skip(6 * 4)  # predefined
            self.write_uint32(0xFFFFFFFF)  # next track ID

    def write_track_header(self, track_id: int, width: int, height: int) -> None:
        with self.atom(MOOV_TRAK_TKHD):
            self.skip(1)  # version
            self.write_uint24(TKHD_TRACK_ENABLED | TKHD_TRACK_IN_MOVIE)
            self.skip(4)  # create time
            self.skip(4)  # modify time
            self.write_uint32(track_id)
            self.skip(4)  # reserved
            self.skip(4)  # duration
            self.skip(8)  # reserved
            self.skip(2)  # layer
            if width > 0:
                self.skip(4)
            else:
                self.write_uint16(1)  # alternate group
                self.write_float16(1)  # volume
            self.skip(2)  # reserved
            self.write_matrix()
            if width > 0:
                self.write_float32(float(width))
                self.write_float32(float(height))
            else:
                self.skip(8)

    def write_media_header(self, timescale: int) -> None:
        with self.atom(MOOV_TRAK_MDIA_MDHD):
            self.skip(1)  # version
            self.skip(3)  # flags
            self.skip(4)  # creation time
            self.skip(4)  # modification time
            self.write_uint32(timescale)
            self.skip(4)  # duration
            self.write_uint16(0x55C4)  # language (unspecified)
            self.skip(2)  # quality

    def write_media_handler(self, s: str, name: str) -> None:
        with self.atom(MOOV_TRAK_MDIA_HDLR):
            self.skip(1)  # version
            self.skip(3)  # flags
            self.skip(4)
            self.write_string(s)  # handler type, 4 bytes
            self.skip(3 * 4)  # reserved
            self.write_string(name)
            self.skip(1)  # string terminator

    def write_video_media_info(self) -> None:
        with self.atom(MOOV_TRAK_MDIA_MINF_VMHD):
            self.skip(1)  # version
            self.write_uint24(1)  # flags, always 1
            self.skip(2)  # graphics mode
            self.skip(3 * 2)  # op color

    def write_audio_media_info(self) -> None:
        with self.atom(MOOV_TRAK_MDIA_MINF_SMHD):
            self.skip(1)  # version
            self.skip(3)  # flags
            self.skip(4)  # balance

    def write_data_info(self) -> None:
        with self.atom(MOOV_TRAK_MDIA_MINF_DINF):
            with self.atom(MOOV_TRAK_MDIA_MINF_DINF_DREF):
                self.skip(1)  # version
                self.skip(3)  # flags
                self.write_uint32(1)  # entries
                with self.atom(MOOV_TRAK_MDIA_MINF_DINF_DREF_URL):
                    self.skip(1)  # version
                    self.write_uint24(1)  # self reference

    def write_sample_table(self, write_sample_desc: Callable[[], None]) -> None:
        with self.atom(MOOV_TRAK_MDIA_MINF_STBL):
            with self.atom(MOOV_TRAK_MDIA_MINF_STBL_STSD):
                self.skip(1)  # version
                self.skip(3)  # flags
                self.write_uint32(1)  # entry count
                write_sample_desc()
            with self.atom(MOOV_TRAK_MDIA_MINF_STBL_STTS):
                self.skip(1 + 3 + 4)
            with self.atom(MOOV_TRAK_MDIA_MINF_STBL_STSC):
                self.skip(1 + 3 + 4)
            with self.atom(MOOV_TRAK_MDIA_MINF_STBL_STSZ):
                self.skip(1 + 3 + 4 + 4)
            with self.atom(MOOV_TRAK_MDIA_MINF_STBL_STCO):
                self.skip(1 + 3 + 4)

    def write_track_extend(self, track_id: int) -> None:
        with self.atom(MOOV_MVEX_TREX):
            self.skip(1)  # version
            self.skip(3)  # flags
            self.write_uint32(track_id)
            self.write_uint32(1)  # default sample description index
            self.skip(4)  # default sample duration
            self.skip(4)  # default sample size
            self.skip(4)  # default sample flags

    def write_video_track(
        self,
        track_id: int,
        codec: str,
        timescale: int,
        width: int,
        height: int,
        conf: Optional[bytes],
    ) -> None:
        with self.atom(MOOV_TRAK):
            self.write_track_header(track_id, width, height)
            with self.atom(MOOV_TRAK_MDIA):
                self.write_media_header(timescale)
                self.write_media_handler("vide", "VideoHandler")
                with self.atom(MOOV_TRAK_MDIA_MINF):
                    self.write_video_media_info()
                    self.write_data_info()
                    self.write_sample_table(
                        lambda: self.write_video(codec, width, height, conf)
                    )

    def write_audio_track(
        self,
        track_id: int,
        codec: str,
        timescale: int,
        channels: int,
        conf: Optional[bytes],
    ) -> None:
        with self.atom(MOOV_TRAK):
            self.write_track_header(track_id, 0, 0)
            with self.atom(MOOV_TRAK_MDIA):
                self.write_media_header(timescale)
                self.write_media_handler("soun", "SoundHandler")
                with self.atom(MOOV_TRAK_MDIA_MINF):
                    self.write_audio_media_info()
                    self.write_data_info()
                    self.write_sample_table(
                        lambda: self.write_audio(codec, channels, timescale, conf)
                    )

    def write_movie_fragment(
        self, seq: int, tid: int, duration: int, size: int, time: int
    ) -> None:
        with self.atom(MOOF):
            with self.atom(MOOF_MFHD):
                self.skip(1)  # version
                self.skip(3)  # flags
                self.write_uint32(seq)
            with self.atom(MOOF_TRAF):
                with self.atom(MOOF_TRAF_TFHD):
                    self.skip(1)  # version
                    self.write_uint24(
                        TFHD_DEFAULT_SAMPLE_DURATION
                        | TFHD_DEFAULT_SAMPLE_SIZE
                        | TFHD_DEFAULT_SAMPLE_FLAGS
                        | TFHD_DEFAULT_BASE_IS_MOOF
                    )
                    self.write_uint32(tid)
                    self.write_uint32(duration)
                    self.write_uint32(size)
                    self.write_uint32(0x2000000)  # default sample flags
                with self.atom(MOOF_TRAF_TFDT):
                    self.write_bytes(1)  # version
                    self.skip(3)  # flags
                    self.write_uint64(time)
                with self.atom(MOOF_TRAF_TRUN):
                    self.skip(1)  # version
                    self.write_uint24(TRUN_DATA_OFFSET)
                    self.write_uint32(1)  # sample count
                    # current position + this field + mdat header
                    self.write_uint32(len(self._b) + 4 + 8)

    def write_data(self, b: bytes) -> None:
        with self.atom(MDAT):
            self.write(b)

    # --- sample descriptions ---------------------------------------------

    def write_video(
        self, codec: str, width: int, height: int, conf: Optional[bytes]
    ) -> None:
        if codec == CODEC_H264:
            entry, config = "avc1", "avcC"
        elif codec == CODEC_H265:
            entry, config = "hev1", "hvcC"
        else:
            raise ValueError(f"unsupported iso video: {codec}")

        with self.atom(entry):
            self.skip(6)
            self.write_uint16(1)  # data reference index
            self.skip(2)  # version
            self.skip(2)  # revision
            self.skip(4)  # vendor
            self.skip(4)  # temporal quality
            self.skip(4)  # spatial quality
            self.write_uint16(width)
            self.write_uint16(height)
            self.write_float32(72)  # horizontal resolution
            self.write_float32(72)  # vertical resolution
            self.skip(4)  # reserved
            self.write_uint16(1)  # frame count
            self.skip(32)  # compressor name
            self.write_uint16(24)  # depth
            self.write_uint16(0xFFFF)  # color table id (-1)
            with self.atom(config):
                self.write(conf)

    def write_audio(
        self, codec: str, channels: int, sample_rate: int, conf: Optional[bytes]
    ) -> None:
        names = {
            CODEC_AAC: "mp4a",
            CODEC_MP3: "mp4a",
            CODEC_OPUS: "Opus",
            CODEC_PCMU: "ulaw",
            CODEC_PCMA: "alaw",
        }
        if codec not in names:
            raise ValueError(f"unsupported iso audio: {codec}")

        with self.atom(names[codec]):
            self.skip(6)
            self.write_uint16(1)  # data reference index
            self.skip(2)  # version
            self.skip(2)  # revision
            self.skip(4)  # vendor
            self.write_uint16(channels)
            self.write_uint16(16)  # sample size
            self.skip(2)  # compression id
            self.skip(2)  # reserved
            self.write_float32(float(sample_rate))

            if codec == CODEC_AAC:
                self.write_esds_aac(conf or b"")
            elif codec == CODEC_MP3:
                self.write_esds_mp3()
            elif codec == CODEC_OPUS:
                with self.atom("dOps"):
                    self.write_bytes(0, 0x02, 0x01, 0x38, 0, 0, 0xBB, 0x80, 0, 0, 0)
            else:
                with self.atom("chan"):
                    self.write_bytes(0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 4, 0, 0, 0, 0)

    def write_esds_aac(self, conf: bytes) -> None:
        header = 5
        size3 = 3
        size4 = 13
        size5 = len(conf) & 0xFF
        size6 = 1

        with self.atom("esds"):
            self.skip(1)  # version
            self.skip(3)  # flags

            self.write_bytes(
                3, 0x80, 0x80, 0x80,
                size3 + header + size4 + header + size5 + header + size6,
            )
            self.skip(2)  # es id
            self.skip(1)  # es flags

            self.write_bytes(4, 0x80, 0x80, 0x80, size4 + header + size5)
            self.write_bytes(0x40)  # object id
            self.write_bytes(0x15)  # stream type
            self.skip(3)  # buffer size
            self.skip(4)  # max bitrate
            self.skip(4)  # avg bitrate

            self.write_bytes(5, 0x80, 0x80, 0x80, size5)
            self.write(conf)

            self.write_bytes(6, 0x80, 0x80, 0x80, 1)
            self.write_bytes(2)

    def write_esds_mp3(self) -> None:
        header = 5
        size3 = 3
        size4 = 13
        size6 = 1

        with self.atom("esds"):
            self.skip(1)  # version
            self.skip(3)  # flags

            self.write_bytes(
                3, 0x80, 0x80, 0x80, size3 + header + size4 + header + size6
            )
            self.skip(2)  # es id
            self.skip(1)  # es flags

            self.write_bytes(4, 0x80, 0x80, 0x80, size4)
            self.write_bytes(0x6B)  # object id
            self.write_bytes(0x15)  # stream type
            self.skip(3)  # buffer size
            self.skip(4)  # max bitrate
            self.skip(4)  # avg bitrate

            self.write_bytes(6, 0x80, 0x80, 0x80, 1)
            self.write_bytes(2)