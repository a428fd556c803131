import random

import pytest

from huffman import (
    FormatError,
    FrequencyEntry,
    HuffmanError,
    InternalInvariantError,
    PreconditionError,
    build_codebook,
    build_huffman_tree,
    entropy,
    average_code_length,
    frequency_table,
    generate_huffman_codes,
    huffman_decode,
    huffman_encode,
    is_prefix_free,
    merge_nodes,
    HuffmanNode,
)

ABRACADABRA_CODES = {"a": "1", "b": "01", "r": "000", "c": "0010", "d": "0011"}


def test_frequency_table_counts_and_order():
    entries = frequency_table("abracadabra")
    assert [(e.symbol, e.count) for e in entries] == [("a", 5), ("b", 2), ("r", 2), ("c", 1), ("d", 1)]
    assert entries[0].probability == pytest.approx(5 / 11)


def test_frequency_table_ties_keep_first_seen_order():
    entries = frequency_table("zyxzyx")
    assert [e.symbol for e in entries] == ["z", "y", "x"]


@pytest.mark.parametrize("text", ["a", "ab", "abracadabra", "the quick brown fox", "".join(chr(i) for i in range(256))])
def test_probabilities_sum_to_one(text):
    assert sum(e.probability for e in frequency_table(text)) == pytest.approx(1.0)


def test_empty_input_is_rejected():
    with pytest.raises(PreconditionError) as exc:
        frequency_table("")
    assert exc.value.phase == "counting"
    with pytest.raises(PreconditionError):
        build_huffman_tree([])


def test_two_symbols_make_one_internal_node():
    root = build_huffman_tree(frequency_table("ab"))
    assert not root.is_leaf()
    assert root.left.is_leaf() and root.right.is_leaf()
    assert root.weight == 2
    assert generate_huffman_codes(root) == {"a": "0", "b": "1"}


def test_abracadabra_codebook():
    codes = build_codebook("abracadabra")
    assert codes == ABRACADABRA_CODES
    assert is_prefix_free(codes)
    bits = huffman_encode("abracadabra", codes)
    assert bits == "10100010010100111010001"
    assert huffman_decode(bits, codes) == "abracadabra"


def test_smaller_child_gets_one():
    heavy, light = HuffmanNode("h", 3), HuffmanNode("l", 1)
    merged = merge_nodes(light, heavy)
    assert (merged.left_bit, merged.right_bit) == ("1", "0")
    merged = merge_nodes(heavy, light)
    assert (merged.left_bit, merged.right_bit) == ("0", "1")


def test_equal_weights_give_right_child_one():
    merged = merge_nodes(HuffmanNode("x", 2), HuffmanNode("y", 2))
    assert (merged.left_bit, merged.right_bit) == ("0", "1")


def test_single_symbol_gets_zero_codeword():
    codes = build_codebook("aaaa")
    assert codes == {"a": "0"}
    bits = huffman_encode("aaaa", codes)
    assert bits == "0000"
    assert huffman_decode(bits, codes) == "aaaa"


def test_build_from_probability_entries_directly():
    entries = [FrequencyEntry("x", 3, 0.5), FrequencyEntry("y", 2, 1 / 3), FrequencyEntry("z", 1, 1 / 6)]
    codes = generate_huffman_codes(build_huffman_tree(entries))
    assert codes == {"x": "0", "y": "10", "z": "11"}


@pytest.mark.parametrize("seed", range(5))
def test_round_trip_and_prefix_freedom_random(seed):
    rng = random.Random(seed)
    alphabet = [chr(i) for i in range(rng.randint(2, 256))]
    text = "".join(rng.choices(alphabet, k=2000))
    codes = build_codebook(text)
    assert is_prefix_free(codes)
    assert all(codes.values())
    assert huffman_decode(huffman_encode(text, codes), codes) == text


@pytest.mark.parametrize("text", ["abracadabra", "mississippi", "aabbccdd", "".join(chr(i) for i in range(256)) * 3])
def test_heap_build_matches_sorted_build(text):
    assert build_codebook(text, use_heap=True) == build_codebook(text)


def test_encoding_is_deterministic():
    text = "she sells sea shells by the sea shore"
    codes1, codes2 = build_codebook(text), build_codebook(text)
    assert codes1 == codes2
    assert huffman_encode(text, codes1) == huffman_encode(text, codes2)


def test_encode_unknown_symbol_is_an_invariant_error():
    with pytest.raises(InternalInvariantError) as exc:
        huffman_encode("abz", {"a": "0", "b": "1"})
    assert exc.value.phase == "encode"


def test_truncated_payload_raises():
    bits = huffman_encode("abracadabra", ABRACADABRA_CODES)
    with pytest.raises(FormatError) as exc:
        huffman_decode(bits[:-2], ABRACADABRA_CODES)
    assert exc.value.phase == "bit match"
    assert "truncated" in str(exc.value)


def test_trailing_incomplete_bits_raise():
    bits = huffman_encode("abracadabra", ABRACADABRA_CODES) + "00"
    with pytest.raises(FormatError):
        huffman_decode(bits, ABRACADABRA_CODES)


def test_bits_matching_no_codeword_raise():
    with pytest.raises(FormatError, match="match no codeword"):
        huffman_decode("011", {"a": "0", "b": "10"})


def test_non_bit_character_in_payload_raises():
    with pytest.raises(FormatError, match="unexpected character"):
        huffman_decode("01x", {"a": "0", "b": "1"})


@pytest.mark.parametrize("codes", [
    {"a": "0", "b": "0"},
    {"a": "0", "b": "01"},
    {"a": "", "b": "1"},
    {"a": "02", "b": "1"},
])
def test_bad_codebooks_are_rejected(codes):
    with pytest.raises(FormatError):
        huffman_decode("0", codes)


def test_errors_share_a_base_class():
    for cls in (PreconditionError, FormatError, InternalInvariantError):
        assert issubclass(cls, HuffmanError)
    assert str(FormatError("boom", phase="table parse")) == "table parse: boom"


def test_average_code_length_within_one_bit_of_entropy():
    text = "abracadabra"
    entries = frequency_table(text)
    codes = build_codebook(text)
    h = entropy(entries)
    avg = average_code_length(entries, codes)
    assert h <= avg < h + 1
    assert avg == pytest.approx(23 / 11)
