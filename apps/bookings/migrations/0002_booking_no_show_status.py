from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="booking",
            name="status",
            field=models.CharField(
                choices=[
                    ("pending", "Pending"),
                    ("confirmed", "Confirmed"),
                    ("checked_in", "Checked in"),
                    ("checked_out", "Checked out"),
                    ("cancelled", "Cancelled"),
                    ("no_show", "No-show"),
                ],
                default="confirmed",
                max_length=20,
            ),
        ),
    ]
