import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Title of the event', max_length=120)),
                ('slug', models.SlugField(help_text='URL identifier derived from the title', max_length=120, unique=True)),
                ('description', models.TextField(help_text='Full description of the event')),
                ('overview', models.CharField(help_text='Short summary shown on event cards', max_length=500)),
                ('image', models.URLField(help_text='Public URL of the event image', max_length=500)),
                ('venue', models.CharField(help_text='Name of the venue', max_length=100)),
                ('location', models.CharField(help_text='City or address of the event', max_length=200)),
                ('date', models.DateField(help_text='Calendar day of the event')),
                ('time', models.CharField(help_text='Start time, HH:MM in 24-hour format', max_length=5)),
                ('mode', models.CharField(choices=[('online', 'Online'), ('offline', 'In-Person'), ('hybrid', 'Hybrid')], help_text='Whether the event is online, in person or both', max_length=10)),
                ('audience', models.CharField(help_text='Target audience', max_length=100)),
                ('agenda', models.JSONField(default=list, help_text='Ordered list of agenda items')),
                ('organizer', models.CharField(help_text='Name of the organizer', max_length=100)),
                ('price', models.DecimalField(decimal_places=2, default=0, help_text='Ticket price, 0 for free events', max_digits=10)),
                ('capacity', models.PositiveIntegerField(blank=True, help_text='Maximum number of confirmed bookings. Leave blank for unlimited.', null=True)),
                ('registration_url', models.URLField(blank=True, default='', help_text='External registration page. Replaces internal booking in the UI.', max_length=500)),
                ('confirmed_bookings', models.PositiveIntegerField(default=0, editable=False, help_text='Number of confirmed bookings, maintained by the booking repository')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When this event was published')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When this event was last modified')),
            ],
            options={
                'verbose_name': 'Event',
                'verbose_name_plural': 'Events',
                'ordering': ['date', '-created_at'],
                'indexes': [models.Index(fields=['date', 'mode'], name='events_even_date_3c4f0e_idx'), models.Index(fields=['-created_at'], name='events_even_created_9b1a2d_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('price__gte', 0)), name='event_price_not_negative')],
            },
        ),
        migrations.CreateModel(
            name='EventTag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Tag text as entered by the organizer', max_length=50)),
                ('position', models.PositiveSmallIntegerField(default=0, help_text='Display order of the tag on the event')),
                ('event', models.ForeignKey(help_text='Event this tag belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='tags', to='events.event')),
            ],
            options={
                'verbose_name': 'Event tag',
                'verbose_name_plural': 'Event tags',
                'ordering': ['position'],
                'indexes': [models.Index(fields=['name'], name='events_even_name_5e7d21_idx')],
                'constraints': [models.UniqueConstraint(fields=('event', 'name'), name='unique_tag_per_event')],
            },
        ),
    ]
