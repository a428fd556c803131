import heapq
from math import log2
from collections import Counter
from typing import Dict, Iterable, List, NamedTuple


class HuffmanError(Exception): # base for every coder failure, tagged with the phase that failed
    def __init__(self, message, phase=None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self):
        if self.phase:
            return f"{self.phase}: {self.message}"
        return self.message


class PreconditionError(HuffmanError, ValueError): # empty or unreadable input
    pass


class FormatError(HuffmanError, ValueError): # malformed table or payload on decode
    pass


class InternalInvariantError(HuffmanError, RuntimeError): # coder logic defect
    pass


class FrequencyEntry(NamedTuple):
    symbol: str
    count: int
    probability: float


def frequency_table(data: Iterable) -> List[FrequencyEntry]:
    """
    Count every symbol of data and return one entry per distinct symbol,
    sorted by probability descending. Equal probabilities keep first-seen order.
    """
    counts = Counter(data) # insertion order == first-seen order
    total = sum(counts.values())
    if total == 0:
        raise PreconditionError("input is empty, nothing to count", phase="counting")

    entries = [FrequencyEntry(symbol, count, count / total) for symbol, count in counts.items()]
    entries.sort(key=lambda e: -e.count) # stable
    return entries


class HuffmanNode: # Node for Huffman tree
    __slots__ = ("symbol", "weight", "left", "right", "left_bit", "right_bit")

    def __init__(self, symbol, weight):
        self.symbol = symbol    # None for internal nodes
        self.weight = weight    # occurrence count of the subtree
        self.left = None
        self.right = None
        self.left_bit = None
        self.right_bit = None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def merge_nodes(left: HuffmanNode, right: HuffmanNode) -> HuffmanNode:
    """Join two nodes under a new internal node and label both edges."""
    merged = HuffmanNode(None, left.weight + right.weight)
    merged.left = left
    merged.right = right

    # smaller child gets '1', on a tie the right child does
    if left.weight < right.weight:
        merged.left_bit, merged.right_bit = '1', '0'
    else:
        merged.left_bit, merged.right_bit = '0', '1'
    return merged


def _build_sorted(leaves: List[HuffmanNode]) -> HuffmanNode:
    tops = list(leaves) # kept sorted by weight descending

    while len(tops) > 1:
        right = tops.pop() # lowest
        left = tops.pop()
        merged = merge_nodes(left, right)

        # insert before the first strictly lighter node so the list stays sorted
        for i, node in enumerate(tops):
            if node.weight < merged.weight:
                tops.insert(i, merged)
                break
        else:
            tops.append(merged)

    return tops[0]


def _build_heap(leaves: List[HuffmanNode]) -> HuffmanNode:
    # (weight, -seq) pops nodes in exactly the order the sorted list gives them up:
    # among equal weights the node placed later in the list comes out first
    heap = [(node.weight, -seq, node) for seq, node in enumerate(leaves)]
    heapq.heapify(heap)
    seq = len(leaves)

    while len(heap) > 1:
        _, _, right = heapq.heappop(heap)
        _, _, left = heapq.heappop(heap)
        merged = merge_nodes(left, right)
        heapq.heappush(heap, (merged.weight, -seq, merged))
        seq += 1

    return heap[0][2]


def build_huffman_tree(entries: List[FrequencyEntry], use_heap: bool = False) -> HuffmanNode:
    """
    Build the tree over a table sorted by probability descending.

    The default merges on a sorted list with linear re-insertion, use_heap=True
    switches to a min-heap for large alphabets. Both produce the same tree.
    """
    if not entries:
        raise PreconditionError("frequency table is empty", phase="tree build")

    leaves = [HuffmanNode(e.symbol, e.count) for e in entries]
    if use_heap:
        return _build_heap(leaves)
    return _build_sorted(leaves)


def generate_huffman_codes(root: HuffmanNode) -> Dict[str, str]:
    """
    Walk the tree depth first and map each leaf symbol to its root-to-leaf bits.
    A tree made of a single leaf gets the codeword '0'.
    """
    if root.is_leaf():
        return {root.symbol: '0'}

    codes = {}
    stack = [(root, '')]
    while stack:
        node, path = stack.pop()
        if node.is_leaf():
            codes[node.symbol] = path
            continue
        # right pushed first so the left subtree is visited first
        stack.append((node.right, path + node.right_bit))
        stack.append((node.left, path + node.left_bit))

    return codes


def build_codebook(data, use_heap: bool = False) -> Dict[str, str]:
    """Table -> tree -> codes in one call; the tree is dropped on return."""
    root = build_huffman_tree(frequency_table(data), use_heap=use_heap)
    return generate_huffman_codes(root)


def is_prefix_free(codes: Dict[str, str]) -> bool:
    words = sorted(codes.values())
    # after sorting, a prefix always sits right before some word it prefixes
    for a, b in zip(words, words[1:]):
        if b.startswith(a):
            return False
    return True


def huffman_encode(data, codes: Dict[str, str]) -> str:
    out = []
    for symbol in data:
        code = codes.get(symbol)
        if code is None:
            raise InternalInvariantError(f"symbol {symbol!r} has no codeword", phase="encode")
        out.append(code)
    return ''.join(out)


def invert_codes(codes: Dict[str, str]) -> Dict[str, str]:
    """codeword -> symbol, rejecting empty, duplicate or prefix codewords."""
    inverse = {}
    for symbol, code in codes.items():
        if not code or code.strip('01'):
            raise FormatError(f"invalid codeword {code!r} for symbol {symbol!r}", phase="table parse")
        if code in inverse:
            raise FormatError(
                f"codeword {code!r} shared by {inverse[code]!r} and {symbol!r}", phase="table parse")
        inverse[code] = symbol

    if not is_prefix_free(codes):
        raise FormatError("codewords are not prefix-free", phase="table parse")
    return inverse


def huffman_decode(bits: str, codes: Dict[str, str]) -> str:
    """
    Greedy decode: grow a buffer bit by bit and emit a symbol as soon as the
    buffer equals a codeword. Leftover bits mean the payload was cut short.
    """
    inverse = invert_codes(codes)
    longest = max((len(c) for c in inverse), default=0)

    decoded = []
    buffer = ''
    for pos, bit in enumerate(bits):
        if bit != '0' and bit != '1':
            raise FormatError(f"unexpected character {bit!r} at payload offset {pos}", phase="bit match")
        buffer += bit
        symbol = inverse.get(buffer)
        if symbol is not None:
            decoded.append(symbol)
            buffer = ''
        elif len(buffer) >= longest:
            raise FormatError(
                f"bits {buffer!r} ending at payload offset {pos} match no codeword", phase="bit match")

    if buffer:
        raise FormatError(f"payload truncated, {len(buffer)} trailing bit(s) {buffer!r} unmatched",
                          phase="bit match")
    return ''.join(decoded)


def average_code_length(entries: List[FrequencyEntry], codes: Dict[str, str]) -> float:
    return sum(e.probability * len(codes[e.symbol]) for e in entries)


def entropy(entries: List[FrequencyEntry]) -> float:
    """Shannon entropy in bits per symbol, the lower bound for average_code_length."""
    return -sum(e.probability * log2(e.probability) for e in entries)

