"""
KTU Timetable – fetches a KTU schedule (iCalendar) and lays it out as a week grid.
"""
