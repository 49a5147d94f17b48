"""Tests for cherryrgb.payloads -- animation payload and per-key chunking."""

import math

import pytest

from cherryrgb.errors import (
    InvalidColorError,
    KeyIndexOutOfBoundsError,
    MalformedPacketError,
    TooManyKeysError,
)
from cherryrgb.models import Brightness, Color, Command, LightingMode, Speed, UnknownByte
from cherryrgb.packet import PAYLOAD_SIZE, prepare_packet
from cherryrgb.payloads import (
    ANIMATION_PAYLOAD_SIZE,
    ANIMATION_PREFIX,
    ANIMATION_TRAILER,
    CHUNK_SIZE,
    TOTAL_KEYS,
    CustomKeyLeds,
    CustomLedChunk,
    LedAnimationPayload,
    chunk_offsets,
)


# =========================================================================
# LED animation payload
# =========================================================================

class TestLedAnimationPayload:

    def _encode(self, mode=LightingMode.VORTEX, brightness=Brightness.FULL,
                speed=Speed.VERY_SLOW, color=Color(244, 255, 100), rainbow=False):
        return LedAnimationPayload(mode, brightness, speed, color, rainbow).to_bytes()

    def test_vortex_full_very_slow(self):
        assert self._encode() == bytes(
            [0x09, 0x00, 0x00, 0x55, 0x00, 0x05, 0x04, 0x04, 0x00, 0x00, 0xF4, 0xFF, 0x64])

    def test_rainbow_flips_only_byte_9(self):
        off = self._encode(rainbow=False)
        on = self._encode(rainbow=True)
        diff = [i for i in range(ANIMATION_PAYLOAD_SIZE) if off[i] != on[i]]
        assert diff == [9]
        assert off[9] == 0x00
        assert on[9] == 0x01

    def test_rolling(self):
        assert self._encode(mode=LightingMode.ROLLING) == bytes(
            [0x09, 0x00, 0x00, 0x55, 0x00, 0x0A, 0x04, 0x04, 0x00, 0x00, 0xF4, 0xFF, 0x64])

    def test_medium_speed(self):
        assert self._encode(speed=Speed.MEDIUM)[7] == 0x02

    def test_low_brightness(self):
        assert self._encode(brightness=Brightness.LOW, speed=Speed.MEDIUM) == bytes(
            [0x09, 0x00, 0x00, 0x55, 0x00, 0x05, 0x01, 0x02, 0x00, 0x00, 0xF4, 0xFF, 0x64])

    def test_default_color_is_off(self):
        payload = LedAnimationPayload(LightingMode.CUSTOM, Brightness.FULL, Speed.SLOW)
        assert payload.to_bytes()[-3:] == b'\x00\x00\x00'

    def test_size_and_prefix(self):
        raw = self._encode()
        assert len(raw) == ANIMATION_PAYLOAD_SIZE
        assert raw[:5] == ANIMATION_PREFIX

    def test_matches_captured_packet(self):
        """Radiation / brightness high / slow / (126, 0, 244), as captured."""
        payload = LedAnimationPayload(LightingMode.RADIATION, Brightness.HIGH, Speed.SLOW,
                                      Color(0x7E, 0x00, 0xF4)).to_bytes()
        raw = prepare_packet(UnknownByte.ONE, Command.SET_ANIMATION, payload)
        assert raw[:17] == bytes.fromhex("04EE0106090000550012030300007E00F4")

    def test_trailer_constant(self):
        assert ANIMATION_TRAILER == bytes([0x01, 0x18, 0x00, 0x55, 0x01])

    def test_plain_ints_normalized(self):
        payload = LedAnimationPayload(0x05, 4, 4, (244, 255, 100))
        assert payload.mode is LightingMode.VORTEX
        assert payload.brightness is Brightness.FULL
        assert payload.speed is Speed.VERY_SLOW
        assert payload.color == Color(244, 255, 100)
        assert payload.to_bytes() == self._encode()

    @pytest.mark.parametrize("fields", [
        (0x63, 4, 4),
        (0x05, 9, 4),
        (0x05, 4, 7),
        ("wave", 4, 4),
    ])
    def test_unknown_codes_rejected(self, fields):
        with pytest.raises(MalformedPacketError):
            LedAnimationPayload(*fields)

    def test_bad_color_rejected(self):
        with pytest.raises(InvalidColorError):
            LedAnimationPayload(LightingMode.WAVE, Brightness.FULL, Speed.SLOW, (1, 2))


# =========================================================================
# chunk_offsets
# =========================================================================

class TestChunkOffsets:

    def test_full_keyboard_layout(self):
        chunks = chunk_offsets(378)
        assert len(chunks) == math.ceil(378 / 56) == 7
        assert [c[0] for c in chunks] == [0, 56, 112, 168, 224, 24, 80]
        assert [c[1] for c in chunks] == [0, 0, 0, 0, 0, 1, 1]

    def test_slices_cover_buffer_in_order(self):
        chunks = chunk_offsets(378)
        assert chunks[0][2] == slice(0, 56)
        assert chunks[-1][2] == slice(336, 378)
        covered = [i for _, _, part in chunks for i in range(part.start, part.stop)]
        assert covered == list(range(378))

    def test_first_secondary_chunk(self):
        for offset, secondary, part in chunk_offsets(378):
            if part.start > 255:
                assert secondary == 1
                assert offset == part.start % 256
                break
        else:
            pytest.fail("no chunk past byte 255")

    def test_start_255_is_primary(self):
        # chunk starting exactly at 255 still fits the offset byte
        chunks = chunk_offsets(300, chunk_size=255)
        assert chunks[1] == (255, 0, slice(255, 300))

    def test_start_256_is_secondary(self):
        chunks = chunk_offsets(300, chunk_size=256)
        assert chunks[1] == (0, 1, slice(256, 300))

    def test_empty(self):
        assert chunk_offsets(0) == []

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            chunk_offsets(10, chunk_size=0)

    def test_default_chunk_size(self):
        assert CHUNK_SIZE == 56
        assert CHUNK_SIZE + 4 == PAYLOAD_SIZE


# =========================================================================
# CustomLedChunk
# =========================================================================

class TestCustomLedChunk:

    def test_layout(self):
        chunk = CustomLedChunk(data_offset=0x18, secondary_keys=1, data=b'\xaa\xbb\xcc')
        assert chunk.data_len == 3
        assert chunk.to_bytes() == bytes([0x03, 0x18, 0x01, 0x00, 0xAA, 0xBB, 0xCC])

    def test_full_chunk_fits_packet(self):
        chunk = CustomLedChunk(data_offset=0, secondary_keys=0, data=bytes(56))
        assert len(chunk.to_bytes()) == PAYLOAD_SIZE


# =========================================================================
# CustomKeyLeds
# =========================================================================

class TestCustomKeyLeds:

    def test_new_is_all_off(self):
        leds = CustomKeyLeds()
        assert len(leds) == TOTAL_KEYS == 126
        assert all(c == Color() for c in leds)

    def test_all_keys_off(self):
        assert CustomKeyLeds.all_keys_off().to_bytes() == bytes(378)

    def test_from_colors_pads_with_off(self):
        leds = CustomKeyLeds.from_colors([(255, 0, 0), Color(0, 255, 0)])
        assert len(leds) == 126
        assert leds.get_led(0) == Color(255, 0, 0)
        assert leds.get_led(1) == Color(0, 255, 0)
        assert leds.get_led(2) == Color()
        assert leds.get_led(125) == Color()

    def test_from_colors_exact(self):
        leds = CustomKeyLeds.from_colors([Color(1, 1, 1)] * 126)
        assert leds.get_led(125) == Color(1, 1, 1)

    def test_from_colors_too_many(self):
        with pytest.raises(TooManyKeysError):
            CustomKeyLeds.from_colors([Color()] * 127)

    def test_set_led_last_index(self):
        leds = CustomKeyLeds()
        leds.set_led(125, (9, 8, 7))
        assert leds.get_led(125) == Color(9, 8, 7)
        assert leds.to_bytes()[-3:] == bytes([9, 8, 7])

    def test_set_led_out_of_bounds(self):
        leds = CustomKeyLeds()
        with pytest.raises(KeyIndexOutOfBoundsError):
            leds.set_led(126, Color())

    def test_set_led_negative(self):
        with pytest.raises(KeyIndexOutOfBoundsError):
            CustomKeyLeds().set_led(-1, Color())

    def test_out_of_bounds_is_index_error(self):
        with pytest.raises(IndexError):
            CustomKeyLeds().get_led(200)

    def test_serialization_order(self):
        leds = CustomKeyLeds()
        leds.set_led(0, Color(1, 2, 3))
        leds.set_led(1, Color(4, 5, 6))
        assert leds.to_bytes()[:6] == bytes([1, 2, 3, 4, 5, 6])


class TestCustomKeyLedsPayloads:

    def test_chunk_count_and_total(self):
        chunks = CustomKeyLeds().get_payloads()
        assert len(chunks) == 7
        assert sum(c.data_len for c in chunks) == 378

    def test_first_chunk(self):
        first = CustomKeyLeds().get_payloads()[0]
        assert first.data_offset == 0
        assert first.secondary_keys == 0
        assert first.data_len == 56

    def test_bank_switch(self):
        chunks = CustomKeyLeds().get_payloads()
        assert (chunks[4].data_offset, chunks[4].secondary_keys) == (224, 0)
        assert (chunks[5].data_offset, chunks[5].secondary_keys) == (24, 1)
        assert (chunks[6].data_offset, chunks[6].secondary_keys, chunks[6].data_len) == (80, 1, 42)

    def test_data_follows_keys(self):
        leds = CustomKeyLeds()
        # key 93 starts at byte 279, the last byte of chunk 4 is 279
        leds.set_led(93, Color(0xAA, 0xBB, 0xCC))
        chunks = leds.get_payloads()
        assert chunks[4].data[-1] == 0xAA
        assert chunks[5].data[:2] == b'\xbb\xcc'

    def test_concatenated_data_is_state(self):
        leds = CustomKeyLeds.from_colors([(i, 255 - i, i // 2) for i in range(126)])
        assert b''.join(c.data for c in leds.get_payloads()) == leds.to_bytes()

    def test_all_off_chunks_match_capture(self):
        """Vendor capture of blank custom colors (discriminant byte ignored)."""
        captured = [
            "04 43 00 0b 38 00 00",
            "04 7b 00 0b 38 38 00",
            "04 b3 00 0b 38 70 00",
            "04 eb 00 0b 38 a8 00",
            "04 23 01 0b 38 e0 00",
            "04 5c 00 0b 38 18 01",
            "04 86 00 0b 2a 50 01",
        ]
        chunks = CustomKeyLeds.all_keys_off().get_payloads()
        for chunk, pkt_str in zip(chunks, captured):
            expected = bytes.fromhex(pkt_str.replace(" ", ""))
            raw = prepare_packet(UnknownByte.ZERO, Command.SET_CUSTOM_LED, chunk.to_bytes())
            assert raw[:2] == expected[:2]
            assert raw[3:7] == expected[3:7]
