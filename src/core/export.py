"""CSV export utilities."""
import csv

from django.http import HttpResponse


def rows_to_csv_response(rows, columns, filename):
    """Convert an iterable of rows to a CSV HttpResponse.

    Args:
        rows: iterable of objects or dicts
        columns: list of (field_name_or_callable, header_label) tuples.
            If field_name_or_callable is a string, the dict key or attribute
            of that name is used. If it's callable, it's called with the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response, delimiter=";")
    writer.writerow([col[1] for col in columns])

    for obj in rows:
        row = []
        for field, _ in columns:
            if callable(field):
                val = field(obj)
            elif isinstance(obj, dict):
                val = obj.get(field, "")
            else:
                val = getattr(obj, field, "")
            row.append(str(val) if val is not None else "")
        writer.writerow(row)

    return response
