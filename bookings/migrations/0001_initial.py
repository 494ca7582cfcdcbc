import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('events', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(help_text='Attendee e-mail address, stored lowercased', max_length=254)),
                ('full_name', models.CharField(help_text='Attendee full name', max_length=100)),
                ('status', models.CharField(choices=[('confirmed', 'Confirmed'), ('cancelled', 'Cancelled'), ('waitlisted', 'Waitlisted')], default='confirmed', help_text='Current state of the booking', max_length=10)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When the attendee registered')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When this booking was last modified')),
                ('event', models.ForeignKey(help_text='Event this booking registers for', on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='events.event')),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['event', 'status'], name='bookings_bo_event_i_4a8c1f_idx'), models.Index(fields=['email'], name='bookings_bo_email_7d2e90_idx')],
                'constraints': [models.UniqueConstraint(fields=('event', 'email'), name='unique_booking_per_event_email')],
            },
        ),
    ]
