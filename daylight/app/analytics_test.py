"""Unit tests for analytics reports."""

import datetime
import unittest

import sqlalchemy
import sqlalchemy.pool
import sqlmodel

from daylight.app import analytics, models


def make_in_memory_engine() -> sqlalchemy.Engine:
    """Create an in-memory SQLite engine for testing."""
    engine = sqlmodel.create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=sqlalchemy.pool.StaticPool,
    )
    sqlmodel.SQLModel.metadata.create_all(engine)
    return engine


def _at(minute: int) -> datetime.datetime:
    return datetime.datetime(2025, 6, 21, 12, minute)


class TestHitRate(unittest.TestCase):
    """Tests for hit_rate."""

    def test_zero_total(self) -> None:
        """No searches gives a rate of 0 rather than a division error."""
        self.assertEqual(analytics.hit_rate(0, 0), 0.0)

    def test_matches_percentage(self) -> None:
        """The rate is 100 * K / N."""
        for resolved, total in [(0, 4), (1, 3), (2, 3), (5, 5), (7, 9)]:
            self.assertEqual(
                analytics.hit_rate(resolved, total), 100 * resolved / total
            )


class TestGetAnalytics(unittest.TestCase):
    """Tests for get_analytics against a populated database."""

    def setUp(self) -> None:
        """Populate two locations and six searches."""
        self.engine = make_in_memory_engine()
        self.session = sqlmodel.Session(self.engine)
        paris = models.Location(
            query='paris', display_name='Paris', lat=48.85, lon=2.35, raw_response='[]'
        )
        oslo = models.Location(
            query='oslo', display_name='Oslo', lat=59.91, lon=10.75, raw_response='[]'
        )
        self.session.add(paris)
        self.session.add(oslo)
        self.session.commit()
        searches = [
            ('Paris', paris.id, 0),
            ('Paris', paris.id, 1),
            ('Oslo', oslo.id, 2),
            ('Paris', paris.id, 3),
            ('Xyzzy', None, 4),
            ('Oslo', oslo.id, 5),
        ]
        for query, location_id, minute in searches:
            self.session.add(
                models.SearchLog(
                    query=query, location_id=location_id, timestamp=_at(minute)
                )
            )
        self.session.commit()

    def tearDown(self) -> None:
        """Close session after each test."""
        self.session.close()

    def test_counts(self) -> None:
        """Totals count every log entry and every location."""
        report = analytics.get_analytics(self.session)
        self.assertEqual(report.total_searches, 6)
        self.assertEqual(report.unique_locations, 2)

    def test_cache_hit_rate(self) -> None:
        """Five of six entries reference a location."""
        report = analytics.get_analytics(self.session)
        self.assertEqual(report.cache_hit_rate, 100 * 5 / 6)

    def test_top_searches(self) -> None:
        """Queries are ranked by frequency."""
        report = analytics.get_analytics(self.session)
        self.assertEqual(
            [(t.query, t.count) for t in report.top_searches],
            [('Paris', 3), ('Oslo', 2), ('Xyzzy', 1)],
        )

    def test_top_searches_limit(self) -> None:
        """top_n caps the ranking."""
        report = analytics.get_analytics(self.session, top_n=1)
        self.assertEqual([t.query for t in report.top_searches], ['Paris'])

    def test_recent_searches_newest_first(self) -> None:
        """Recent searches are ordered by timestamp descending."""
        report = analytics.get_analytics(self.session, recent_n=3)
        self.assertEqual(
            [(r.query, r.timestamp) for r in report.recent_searches],
            [('Oslo', _at(5)), ('Xyzzy', _at(4)), ('Paris', _at(3))],
        )

    def test_serializes_with_camel_case_keys(self) -> None:
        """The report dumps with the keys the front end reads."""
        data = analytics.get_analytics(self.session).model_dump(by_alias=True)
        self.assertEqual(
            set(data),
            {
                'totalSearches',
                'uniqueLocations',
                'topSearches',
                'recentSearches',
                'cacheHitRate',
            },
        )

    def test_read_only(self) -> None:
        """Building the report writes nothing."""
        analytics.get_analytics(self.session)
        self.assertEqual(analytics.count_searches(self.session), 6)
        self.assertEqual(analytics.count_locations(self.session), 2)


class TestEmptyDatabase(unittest.TestCase):
    """Tests for reports over an empty database."""

    def test_empty_report(self) -> None:
        """An empty database reports zeros and empty lists."""
        engine = make_in_memory_engine()
        with sqlmodel.Session(engine) as session:
            report = analytics.get_analytics(session)
        self.assertEqual(report.total_searches, 0)
        self.assertEqual(report.unique_locations, 0)
        self.assertEqual(report.top_searches, [])
        self.assertEqual(report.recent_searches, [])
        self.assertEqual(report.cache_hit_rate, 0)

    def test_empty_export(self) -> None:
        """An empty database exports empty lists with a timestamp."""
        engine = make_in_memory_engine()
        with sqlmodel.Session(engine) as session:
            snapshot = analytics.export_snapshot(session)
        self.assertEqual(snapshot.locations, [])
        self.assertEqual(snapshot.searches, [])
        self.assertIsNotNone(snapshot.exported_at.tzinfo)


class TestExportSnapshot(unittest.TestCase):
    """Tests for export_snapshot."""

    def test_exports_everything_newest_first(self) -> None:
        """Both tables are dumped in full, newest first."""
        engine = make_in_memory_engine()
        with sqlmodel.Session(engine) as session:
            for minute, query in [(0, 'paris'), (1, 'oslo')]:
                session.add(
                    models.Location(
                        query=query,
                        display_name=query.title(),
                        lat=0.0,
                        lon=0.0,
                        raw_response='[]',
                        created_at=_at(minute),
                    )
                )
            for minute in range(3):
                session.add(models.SearchLog(query=f'q{minute}', timestamp=_at(minute)))
            session.commit()

            snapshot = analytics.export_snapshot(session)

        self.assertEqual([loc.query for loc in snapshot.locations], ['oslo', 'paris'])
        self.assertEqual([s.query for s in snapshot.searches], ['q2', 'q1', 'q0'])


if __name__ == '__main__':
    unittest.main()
