from datetime import datetime

import pytz

from models.db import get_connection

SEGMENT_COLUMNS = "id, date, mode, distance_km, emissions_kg, from_location, to_location, purpose"


class BusinessTripStore:
    """Pending and completed business trips with their ordered segments.

    A user has at most one pending trip. Submitting it flips the status to
    'completed' and stores the totals; the segments stay attached.
    """

    def __init__(self, connect=get_connection):
        self.connect = connect

    def _segments(self, cursor, trip_id):
        cursor.execute(
            f"SELECT {SEGMENT_COLUMNS} FROM trip_segments WHERE trip_id = %s ORDER BY position, id",
            (trip_id,)
        )
        return cursor.fetchall()

    def get_pending(self, company_id, user_id):
        conn = self.connect()
        cursor = conn.cursor(dictionary=True)
        cursor.execute("""
            SELECT id, purpose, status FROM business_trips
            WHERE company_id = %s AND user_id = %s AND status = 'pending'
            ORDER BY id DESC LIMIT 1
        """, (company_id, user_id))
        trip = cursor.fetchone()
        if trip:
            trip['segments'] = self._segments(cursor, trip['id'])
        cursor.close()
        conn.close()
        return trip

    def create_pending(self, company_id, user_id, purpose):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO business_trips (company_id, user_id, purpose, status, created_at)
            VALUES (%s, %s, %s, 'pending', %s)
        """, (company_id, user_id, purpose, datetime.now(pytz.utc)))
        trip_id = cursor.lastrowid
        conn.commit()
        cursor.close()
        conn.close()
        return trip_id

    def add_segment(self, trip_id, position, segment):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO trip_segments (trip_id, position, date, mode, distance_km, emissions_kg,
                                       from_location, to_location, purpose)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """, (
            trip_id, position, segment['date'], segment['mode'], segment['distance_km'],
            segment['emissions_kg'], segment['from_location'], segment['to_location'], segment.get('purpose')
        ))
        segment_id = cursor.lastrowid
        conn.commit()
        cursor.close()
        conn.close()
        return segment_id

    def remove_segment(self, trip_id, segment_id):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM trip_segments WHERE id = %s AND trip_id = %s", (segment_id, trip_id))
        removed = cursor.rowcount > 0
        conn.commit()
        cursor.close()
        conn.close()
        return removed

    def delete_pending(self, trip_id):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM trip_segments WHERE trip_id = %s", (trip_id,))
        cursor.execute("DELETE FROM business_trips WHERE id = %s AND status = 'pending'", (trip_id,))
        conn.commit()
        cursor.close()
        conn.close()

    def complete(self, trip_id, total_distance_km, total_emissions_kg):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE business_trips
            SET status = 'completed', total_distance_km = %s, total_emissions_kg = %s, submitted_at = %s
            WHERE id = %s AND status = 'pending'
        """, (total_distance_km, total_emissions_kg, datetime.now(pytz.utc), trip_id))
        completed = cursor.rowcount > 0
        conn.commit()
        cursor.close()
        conn.close()
        return completed

    def list_completed(self, company_id, user_id):
        conn = self.connect()
        cursor = conn.cursor(dictionary=True)
        cursor.execute("""
            SELECT id, purpose, status, total_distance_km, total_emissions_kg, submitted_at
            FROM business_trips
            WHERE company_id = %s AND user_id = %s AND status = 'completed' AND is_deleted = FALSE
            ORDER BY submitted_at DESC, id DESC
        """, (company_id, user_id))
        trips = cursor.fetchall()
        for trip in trips:
            trip['segments'] = self._segments(cursor, trip['id'])
        cursor.close()
        conn.close()
        return trips

    def soft_delete(self, company_id, user_id, trip_id):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE business_trips SET is_deleted = TRUE, deleted_at = %s
            WHERE id = %s AND company_id = %s AND user_id = %s AND status = 'completed' AND is_deleted = FALSE
        """, (datetime.now(pytz.utc), trip_id, company_id, user_id))
        deleted = cursor.rowcount > 0
        conn.commit()
        cursor.close()
        conn.close()
        return deleted
