from django.conf import settings
from django.shortcuts import redirect


def index(request):
    # The API has no landing page of its own; send visitors to the SPA.
    return redirect(settings.FRONTEND_URL)
