from datetime import datetime

import pytz
from dateutil import parser

from models.db import get_connection


def _checked_in_at(record):
    try:
        return parser.parse(f"{record['date']} {record.get('check_in_time') or '00:00'}")
    except (ValueError, OverflowError):
        return datetime.min


def newest_first(records):
    """Order commute records by date and check-in time, newest first."""
    return sorted(records, key=_checked_in_at, reverse=True)


class CommuteRecordStore:
    def __init__(self, connect=get_connection):
        self.connect = connect

    def save(self, company_id, user_id, record):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO commute_records (company_id, user_id, employee_id, date, check_in_time, mode, subtype,
                                         one_way_distance_km, round_trip_distance_km, emissions_kg, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """, (
            company_id, user_id, record['employee_id'], record['date'], record.get('check_in_time'),
            record['mode'], record.get('subtype'), record['one_way_distance_km'],
            record['round_trip_distance_km'], record['emissions_kg'], datetime.now(pytz.utc)
        ))
        record_id = cursor.lastrowid
        conn.commit()
        cursor.close()
        conn.close()
        return record_id

    def list_for_user(self, company_id, user_id):
        conn = self.connect()
        cursor = conn.cursor(dictionary=True)
        cursor.execute("""
            SELECT id, employee_id, date, check_in_time, mode, subtype,
                   one_way_distance_km, round_trip_distance_km, emissions_kg, created_at
            FROM commute_records
            WHERE company_id = %s AND user_id = %s AND is_deleted = FALSE
        """, (company_id, user_id))
        records = cursor.fetchall()
        cursor.close()
        conn.close()
        return newest_first(records)

    def soft_delete(self, company_id, user_id, record_id):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE commute_records SET is_deleted = TRUE, deleted_at = %s
            WHERE id = %s AND company_id = %s AND user_id = %s AND is_deleted = FALSE
        """, (datetime.now(pytz.utc), record_id, company_id, user_id))
        deleted = cursor.rowcount > 0
        conn.commit()
        cursor.close()
        conn.close()
        return deleted
