from django.core.management.base import BaseCommand, CommandError

from scheduling.models import AvailabilityRule, User
from scheduling.utils.slots import parse_hhmm


class Command(BaseCommand):
    help = "Create weekly availability rules for tutors (defaults: Mon-Fri 09:00-17:00, 0=Sunday)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--tutor",
            help="Username of a single tutor (default: every tutor).",
        )
        parser.add_argument(
            "--days",
            default="1,2,3,4,5",
            help="Comma-separated days, 0=Sunday .. 6=Saturday (default 1,2,3,4,5).",
        )
        parser.add_argument("--start", default="09:00", help="Window start HH:MM (default 09:00).")
        parser.add_argument("--end", default="17:00", help="Window end HH:MM (default 17:00).")
        parser.add_argument("--timezone", default="UTC", help="Timezone label stored on each rule.")

    def handle(self, *args, **opts):
        try:
            days = sorted({int(d) for d in opts["days"].split(",") if d.strip()})
            start = parse_hhmm(opts["start"])
            end = parse_hhmm(opts["end"])
        except ValueError as exc:
            raise CommandError(f"Bad argument: {exc}")
        if any(d < 0 or d > 6 for d in days):
            raise CommandError("--days must be between 0 and 6")
        if start >= end:
            raise CommandError("--start must be before --end")

        tutors = User.objects.filter(role=User.Roles.TUTOR)
        if opts.get("tutor"):
            tutors = tutors.filter(username=opts["tutor"])
        if not tutors.exists():
            self.stdout.write(self.style.WARNING("No tutors found."))
            return

        total = 0
        for tutor in tutors:
            created = 0
            for day in days:
                _, made = AvailabilityRule.objects.get_or_create(
                    tutor=tutor,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    defaults={"timezone": opts["timezone"]},
                )
                created += int(made)
            total += created
            self.stdout.write(self.style.SUCCESS(f"{tutor.username}: created {created} rules ({start:%H:%M} → {end:%H:%M})"))

        self.stdout.write(self.style.MIGRATE_HEADING(f"Total rules created: {total}"))
