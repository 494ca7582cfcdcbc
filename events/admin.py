"""Admin interface for events."""

from typing import Any, ClassVar

from django import forms
from django.contrib import admin
from django.http import HttpRequest
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .models import Event, EventTag
from .slugs import generate_slug
from .validators import clean_event_fields, collect_event_errors


class EventAdminForm(forms.ModelForm):
    """Event form applying the event validation rules and rejecting taken or empty slugs."""

    class Meta:
        """Metadata for the EventAdminForm."""

        model = Event
        fields = "__all__"

    def clean_title(self) -> str:
        """Check that the title yields a free slug."""
        title = self.cleaned_data["title"]
        slug = generate_slug(title)
        if not slug:
            raise forms.ValidationError(_("Title must contain at least one letter or number"))
        if Event.objects.filter(slug=slug).exclude(pk=self.instance.pk).exists():
            raise forms.ValidationError(_("An event with this title already exists"))
        return title

    def clean(self) -> dict[str, Any]:
        """Apply the event validation rules; the past-date rule only on add or date change."""
        cleaned_data = super().clean()
        fields = dict(cleaned_data)
        if fields.get("date") is not None:
            fields["date"] = fields["date"].isoformat()
        errors = collect_event_errors(
            clean_event_fields(fields),
            today=timezone.localdate(),
            check_date=self.instance.pk is None or "date" in self.changed_data,
        )
        # Tags live in the inline formset
        errors.pop("tags", None)
        for name, messages in errors.items():
            if name in self.fields and name not in self.errors:
                self.add_error(name, messages)
        return cleaned_data


class EventTagInline(admin.TabularInline):
    """Inline admin for the tags of an event."""

    model = EventTag
    extra = 1
    min_num = 1
    validate_min = True
    fields = ("name", "position")


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin configuration for the Event model."""

    form = EventAdminForm
    list_display = (
        "title",
        "date",
        "time",
        "mode",
        "location",
        "confirmed_bookings",
        "capacity",
        "is_full",
    )
    list_filter = ("mode", "date")
    search_fields = ("title", "description", "organizer", "location", "tags__name")
    readonly_fields = ("slug", "confirmed_bookings", "created_at", "updated_at")
    inlines: ClassVar[list[type[admin.TabularInline]]] = [EventTagInline]
    fieldsets: ClassVar[list[Any]] = [
        (
            None,
            {
                "fields": (
                    "title",
                    "slug",
                    "overview",
                    "description",
                    "image",
                ),
            },
        ),
        (
            _("Schedule & place"),
            {
                "fields": (
                    "date",
                    "time",
                    "mode",
                    "venue",
                    "location",
                ),
            },
        ),
        (
            _("Programme"),
            {
                "fields": (
                    "audience",
                    "agenda",
                    "organizer",
                ),
            },
        ),
        (
            _("Registration"),
            {
                "fields": (
                    "price",
                    "capacity",
                    "confirmed_bookings",
                    "registration_url",
                ),
            },
        ),
        (
            _("Metadata"),
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    ]

    @admin.display(boolean=True, description=_("Full"))
    def is_full(self, obj: Event) -> bool:
        """Show whether no confirmed seats are left."""
        return obj.spots_left == 0

    def save_model(
        self,
        request: HttpRequest,
        obj: Event,
        form: forms.ModelForm,
        change: bool,  # noqa: FBT001
    ) -> None:
        """Derive the slug when the title changed or no slug exists yet."""
        if "title" in form.changed_data or not obj.slug:
            obj.slug = generate_slug(obj.title)
        super().save_model(request, obj, form, change)
