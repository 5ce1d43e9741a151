import itertools

import pytest

from utils.co2_calculator import (
    build_commute_record,
    build_segment,
    commute_emissions,
    complete_trip,
    pending_trip_add_segment,
    pending_trip_remove_segment,
    recommended_mode,
    segment_emissions,
    trip_totals,
)
from utils.emission_factors import coefficient_for
from utils.errors import InvalidInput, NotFound


class TestCommuteEmissions:

    def test_petrol_car_ten_km(self):
        round_trip, emissions = commute_emissions(10, 'car', 'petrol')
        assert round_trip == 20
        assert emissions == pytest.approx(3.42)

    @pytest.mark.parametrize("mode,subtype", [
        ('car', 'diesel'), ('car', 'hybrid'), ('motorcycle', 'ev'),
        ('bus', None), ('train', None), ('coach', None), ('lrt', None),
    ])
    @pytest.mark.parametrize("distance", [0.5, 7, 42.195, 300])
    def test_round_trip_doubling(self, mode, subtype, distance):
        round_trip, emissions = commute_emissions(distance, mode, subtype)
        assert round_trip == 2 * distance
        assert emissions == round_trip * coefficient_for(mode, subtype)

    @pytest.mark.parametrize("mode", ['walk', 'bicycle'])
    @pytest.mark.parametrize("distance", [0.1, 5, 80])
    def test_zero_emission_modes(self, mode, distance):
        assert commute_emissions(distance, mode)[1] == 0

    def test_numeric_strings_accepted(self):
        assert commute_emissions('12.5', 'train')[0] == 25

    @pytest.mark.parametrize("distance", [0, -3, 'abc', None, float('nan'), float('inf'), True])
    def test_invalid_distance(self, distance):
        with pytest.raises(InvalidInput):
            commute_emissions(distance, 'bus')

    def test_unknown_mode(self):
        with pytest.raises(InvalidInput):
            commute_emissions(10, 'hovercraft')


class TestSegmentEmissions:

    def test_short_haul_flight(self):
        assert segment_emissions(1000, 'plane') == pytest.approx(255.0)

    def test_plane_switches_to_long_haul_past_threshold(self):
        assert segment_emissions(3700, 'plane') == pytest.approx(3700 * 0.255)
        assert segment_emissions(5000, 'plane') == pytest.approx(5000 * 0.139)

    def test_business_car_is_petrol(self):
        assert segment_emissions(100, 'car') == pytest.approx(17.1)

    def test_electric_car(self):
        assert segment_emissions(100, 'car_electric') == pytest.approx(5.4)

    def test_zero_distance_rejected(self):
        with pytest.raises(InvalidInput):
            segment_emissions(0, 'train')


class TestTripTotals:

    def test_sums_distance_and_emissions(self):
        segments = [
            {'distance_km': 100, 'emissions_kg': 10},
            {'distance_km': 200, 'emissions_kg': 20},
            {'distance_km': 50, 'emissions_kg': 5},
        ]
        assert trip_totals(segments) == (350, 35)

    def test_empty_trip(self):
        assert trip_totals([]) == (0, 0)

    def test_permutation_invariant(self):
        segments = [
            {'distance_km': 0.1, 'emissions_kg': 0.0171},
            {'distance_km': 1234.567, 'emissions_kg': 314.81},
            {'distance_km': 1e-7, 'emissions_kg': 3.3},
            {'distance_km': 88.8, 'emissions_kg': 2.3976},
        ]
        expected = trip_totals(segments)
        for order in itertools.permutations(segments):
            assert trip_totals(order) == expected


class TestRecommendedMode:

    @pytest.mark.parametrize("distance,expected", [
        (3700.01, 'plane_long'),
        (3700.0, 'plane'),
        (500.01, 'plane'),
        (500, 'train'),
        (100.5, 'train'),
        (100, 'coach'),
        (50.1, 'coach'),
        (50, 'car'),
        (3, 'car'),
    ])
    def test_thresholds(self, distance, expected):
        assert recommended_mode(distance) == expected


class TestRecords:

    def test_commute_record_fields(self):
        record = build_commute_record('2025-03-01', 'Car', 10, '08:30', 'EMP001', subtype='Petrol')
        assert record['mode'] == 'car'
        assert record['subtype'] == 'petrol'
        assert record['round_trip_distance_km'] == 20
        assert record['emissions_kg'] == pytest.approx(3.42)
        assert record['employee_id'] == 'EMP001'

    def test_commute_record_needs_date(self):
        with pytest.raises(InvalidInput):
            build_commute_record('', 'bus', 10, '08:30', 'EMP001')

    @pytest.mark.parametrize("value", ['tomorrow-ish', '2025-13-01', '2025-02-30'])
    def test_malformed_dates_rejected(self, value):
        with pytest.raises(InvalidInput, match="Invalid date"):
            build_commute_record(value, 'bus', 10, '08:30', 'EMP001')
        with pytest.raises(InvalidInput, match="Invalid date"):
            build_segment(value, 'train', 120, 'Singapore', 'Kuala Lumpur')

    def test_date_normalised_to_iso(self):
        record = build_segment('20250301', 'train', 120, 'Singapore', 'Kuala Lumpur')
        assert record['date'] == '2025-03-01'

    def test_segment_needs_both_locations(self):
        with pytest.raises(InvalidInput):
            build_segment('2025-03-01', 'train', 120, 'Singapore', '')


class TestPendingTripLifecycle:

    def _segment(self, segment_id, distance, emissions):
        return {'id': segment_id, 'distance_km': distance, 'emissions_kg': emissions, 'purpose': 'Conference'}

    def test_first_segment_creates_pending_trip(self):
        pending = pending_trip_add_segment(None, self._segment(1, 100, 10))
        assert pending['status'] == 'pending'
        assert pending['purpose'] == 'Conference'
        assert len(pending['segments']) == 1

    def test_add_keeps_order(self):
        pending = pending_trip_add_segment(None, self._segment(1, 100, 10))
        pending = pending_trip_add_segment(pending, self._segment(2, 200, 20))
        assert [s['id'] for s in pending['segments']] == [1, 2]

    def test_removing_last_segment_discards_trip(self):
        pending = pending_trip_add_segment(None, self._segment(1, 100, 10))
        assert pending_trip_remove_segment(pending, 1) is None

    def test_removing_unknown_segment(self):
        pending = pending_trip_add_segment(None, self._segment(1, 100, 10))
        with pytest.raises(NotFound):
            pending_trip_remove_segment(pending, 99)

    def test_complete_trip_totals(self):
        pending = None
        for i, (distance, emissions) in enumerate([(100, 10), (200, 20), (50, 5)]):
            pending = pending_trip_add_segment(pending, self._segment(i, distance, emissions))
        completed = complete_trip(pending)
        assert completed['status'] == 'completed'
        assert completed['total_distance_km'] == 350
        assert completed['total_emissions_kg'] == 35

    def test_complete_without_segments(self):
        with pytest.raises(InvalidInput):
            complete_trip(None)
