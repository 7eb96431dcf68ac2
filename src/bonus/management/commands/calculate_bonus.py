"""Run bonus calculations from the command line."""
from django.core.management.base import BaseCommand, CommandError

from bonus.engine import calculate_range
from bonus.exceptions import BonusError
from suppliers.models import Supplier


class Command(BaseCommand):
    help = "Calculate bonuses for a period or a period range (YYYY-MM)"

    def add_arguments(self, parser):
        parser.add_argument("start", help="First period, YYYY-MM")
        parser.add_argument("end", nargs="?", help="Last period, YYYY-MM (defaults to start)")
        parser.add_argument("--supplier", help="Limit the run to one supplier (name)")

    def handle(self, *args, **options):
        supplier = None
        if options["supplier"]:
            supplier = Supplier.objects.filter(name__iexact=options["supplier"]).first()
            if supplier is None:
                raise CommandError(f"Ukjent leverandor: {options['supplier']}")

        try:
            report = calculate_range(options["start"], options["end"] or options["start"], supplier=supplier)
        except (BonusError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        for period in report.periods:
            line = f"{period.period}: {period.status}, {period.updated} oppdatert, {period.failed} feilet"
            if period.message:
                line += f" ({period.message})"
            self.stdout.write(line)
            for warning in period.warnings:
                self.stdout.write(self.style.WARNING(
                    f"  Mangler regel: {warning.supplier_name} / {warning.brand} ({warning.turnover})"
                ))
        style = self.style.SUCCESS if not report.failed_periods and not report.failed else self.style.WARNING
        self.stdout.write(style(report.summary))
