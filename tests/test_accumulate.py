import unittest
from itertools import count

from mongoschema.accumulate import TypeAccumulator, accumulate
from mongoschema.errors import UnclassifiableValueError
from mongoschema.lattice import DOUBLE, INT64, STRING, Mixed, Sequence, Struct
from mongoschema.render import RenderOptions, render


class TypeAccumulatorTests(unittest.TestCase):
    def test_starts_as_empty_struct(self) -> None:
        accumulator = TypeAccumulator()
        self.assertEqual(accumulator.result, Struct())
        self.assertEqual(accumulator.count, 0)

    def test_fields_only_grow(self) -> None:
        accumulator = TypeAccumulator()
        accumulator.add({"a": 1})
        first = accumulator.result
        accumulator.add({"b": "x"})
        accumulator.add({})
        self.assertEqual(accumulator.result, Struct({"a": INT64, "b": STRING}))
        self.assertEqual(accumulator.count, 3)
        self.assertEqual(first, Struct({"a": INT64}))

    def test_widening_happens_before_mixed_dedup(self) -> None:
        accumulator = TypeAccumulator()
        accumulator.extend([{"n": 1}, {"n": 2.5}, {"n": "x"}])
        field_type = accumulator.result.fields["n"]
        self.assertIsInstance(field_type, Mixed)
        self.assertEqual(field_type.alternatives, (DOUBLE, STRING))
        self.assertEqual(
            render(field_type, RenderOptions(comments=True)),
            "interface{} /* float64, string */",
        )

    def test_sequence_of_struct_fields_merge_across_records(self) -> None:
        accumulator = TypeAccumulator()
        accumulator.extend([{"items": [{"a": 1}]}, {"items": [{"b": "x"}]}, {"items": []}])
        self.assertEqual(
            accumulator.result,
            Struct({"items": Sequence(Struct({"a": INT64, "b": STRING}))}),
        )


class AccumulateTests(unittest.TestCase):
    def test_limit_stops_an_unbounded_supply(self) -> None:
        records = ({"n": index} for index in count())
        result = accumulate(records, limit=5)
        self.assertEqual(result, Struct({"n": INT64}))

    def test_zero_limit_means_unlimited(self) -> None:
        seen = []

        def _records():
            for index in range(3):
                seen.append(index)
                yield {"n": index}

        accumulate(_records(), limit=0)
        self.assertEqual(seen, [0, 1, 2])

    def test_short_supply_is_tolerated(self) -> None:
        result = accumulate(iter([{"a": 1}]), limit=100)
        self.assertEqual(result, Struct({"a": INT64}))

    def test_empty_supply(self) -> None:
        self.assertEqual(accumulate([]), Struct())

    def test_progress_callback_batches(self) -> None:
        advances = []
        accumulate(
            [{"n": index} for index in range(5)],
            progress_callback=advances.append,
            progress_interval=2,
        )
        self.assertEqual(advances, [2, 2, 1])

    def test_invalid_progress_interval(self) -> None:
        with self.assertRaises(ValueError):
            accumulate([], progress_interval=0)

    def test_unclassifiable_record_aborts(self) -> None:
        with self.assertRaises(UnclassifiableValueError):
            accumulate([{"a": 1}, {"a": object()}])

    def test_merge_order_decides_alternative_order(self) -> None:
        forward = accumulate([{"v": "s"}, {"v": True}])
        backward = accumulate([{"v": True}, {"v": "s"}])
        self.assertEqual(forward, backward)
        self.assertNotEqual(render(forward, RenderOptions(comments=True)), render(backward, RenderOptions(comments=True)))


if __name__ == "__main__":
    unittest.main()
