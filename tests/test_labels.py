# =============================================================================
# test_labels.py - Label Allocator Unit Tests
# =============================================================================

from concurrent.futures import ThreadPoolExecutor

from bracer.config import DEFAULT_LABEL_PREFIX
from bracer.labels import LabelAllocator, default_allocator, next_local_label


class TestLabelAllocator:

    def test_starts_at_zero(self):
        allocator = LabelAllocator()
        assert allocator.next_label() == ".L_bracer_local_label_0"
        assert allocator.next_label() == ".L_bracer_local_label_1"

    def test_start_value(self):
        assert LabelAllocator(start=7).next_label() == ".L_bracer_local_label_7"

    def test_prefix(self):
        allocator = LabelAllocator(prefix=".Lguard_")
        assert allocator.next_label() == ".Lguard_0"

    def test_prefix_override_shares_counter(self):
        allocator = LabelAllocator()
        assert allocator.next_label(".La_") == ".La_0"
        assert allocator.next_label() == ".L_bracer_local_label_1"

    def test_next_number(self):
        allocator = LabelAllocator(start=3)
        assert [allocator.next_number() for _ in range(3)] == [3, 4, 5]

    def test_concurrent_allocation_is_unique(self):
        """Labels drawn from many threads never collide."""
        allocator = LabelAllocator()

        def draw(_):
            return [allocator.next_label() for _ in range(250)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            labels = [label for batch in pool.map(draw, range(16)) for label in batch]

        assert len(labels) == 16 * 250
        assert len(set(labels)) == len(labels)
        assert allocator.next_number() == 16 * 250


class TestProcessWideAllocator:

    def test_labels_never_repeat(self):
        labels = {next_local_label() for _ in range(100)}
        assert len(labels) == 100

    def test_default_prefix(self):
        assert next_local_label().startswith(DEFAULT_LABEL_PREFIX)
        assert default_allocator.prefix == DEFAULT_LABEL_PREFIX

    def test_monotonic(self):
        first = int(next_local_label().rsplit("_", 1)[1])
        second = int(next_local_label().rsplit("_", 1)[1])
        assert second > first
