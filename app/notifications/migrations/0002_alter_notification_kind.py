from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="notification",
            name="kind",
            field=models.CharField(
                choices=[
                    ("payment_approved", "Payment approved"),
                    ("funds_release_upcoming", "Funds release upcoming"),
                    ("funds_released", "Funds released"),
                    ("dispute_opened", "Dispute opened"),
                    ("refund_processed", "Refund processed"),
                    ("withdrawal_requested", "Withdrawal requested"),
                    ("recurring_services_scheduled", "Recurring services scheduled"),
                    ("recurring_service_cancelled", "Recurring service cancelled"),
                ],
                db_index=True,
                help_text="Business event that produced this notification",
                max_length=50,
            ),
        ),
    ]
