"""Language Strings - localized user-facing messages keyed by error code.

Invariants:
    - All strings are pure data (no IO, no computation beyond lookup)
    - Every code in core/errors.py that reaches a client has an EN_US entry
    - Lookup never raises: unknown locale falls back to EN_US, unknown code to None

Design Decisions:
    - Supported cultures mirror the request localization options of the API:
      en-US, fr-FR, de-DE
    - Accept-Language parsed with q-values; a bare language ("fr") matches its culture
"""

from enum import Enum

from school_api.core import errors as codes


class Locale(str, Enum):
    """Supported UI cultures."""
    EN_US = "en-US"
    FR_FR = "fr-FR"
    DE_DE = "de-DE"


DEFAULT_LOCALE = Locale.EN_US


_MESSAGES: dict[Locale, dict[str, str]] = {
    Locale.EN_US: {
        codes.SCHOOL_NOT_FOUND: "The requested school was not found.",
        codes.SCHOOL_NOT_FOUND_AT_POINT_IN_TIME: (
            "The school did not exist at the requested point in time."
        ),
        codes.NO_SCHOOLS_FOUND: "No schools were found.",
        codes.NO_SCHOOLS_IN_DATE_RANGE: "No schools were found in the given date range.",
        codes.NO_SCHOOL_VERSIONS_FOUND: "No versions were found for the requested school.",
        codes.FAILED_TO_ADD_SCHOOL: "The school could not be added.",
        codes.FAILED_TO_UPDATE_SCHOOL: "The school could not be updated.",
        codes.FAILED_TO_DELETE_SCHOOL: "The school could not be deleted.",
        codes.SCHOOL_VERSION_CONFLICT: (
            "The school was modified by another request. Reload it and try again."
        ),
        codes.SCHOOL_ID_MISMATCH: "The id in the URL does not match the id in the body.",
        codes.INVALID_DATE_RANGE: "fromDate must be earlier than or equal to toDate.",
        codes.UNEXPECTED_ERROR: "An unexpected error occurred while processing the request.",
        codes.OPERATION_NOT_AVAILABLE: "This operation is not available on this instance.",
        codes.NOT_ALLOWED_IN_READER_MODE: "Write operations are not allowed on a reader instance.",
        codes.NOT_ALLOWED_IN_WRITER_MODE: "Read operations are not allowed on a writer instance.",
        codes.VALIDATION_ERROR: "Invalid request data.",
        codes.INTERNAL_ERROR: "An unexpected error occurred.",
        codes.DATABASE_ERROR: "The database is temporarily unavailable.",
    },
    Locale.FR_FR: {
        codes.SCHOOL_NOT_FOUND: "L'ecole demandee est introuvable.",
        codes.SCHOOL_NOT_FOUND_AT_POINT_IN_TIME: (
            "L'ecole n'existait pas a la date demandee."
        ),
        codes.NO_SCHOOLS_FOUND: "Aucune ecole trouvee.",
        codes.NO_SCHOOLS_IN_DATE_RANGE: "Aucune ecole trouvee dans la periode indiquee.",
        codes.NO_SCHOOL_VERSIONS_FOUND: "Aucune version trouvee pour cette ecole.",
        codes.FAILED_TO_ADD_SCHOOL: "L'ecole n'a pas pu etre ajoutee.",
        codes.FAILED_TO_UPDATE_SCHOOL: "L'ecole n'a pas pu etre mise a jour.",
        codes.FAILED_TO_DELETE_SCHOOL: "L'ecole n'a pas pu etre supprimee.",
        codes.SCHOOL_VERSION_CONFLICT: (
            "L'ecole a ete modifiee par une autre requete. Rechargez-la et reessayez."
        ),
        codes.SCHOOL_ID_MISMATCH: "L'identifiant de l'URL ne correspond pas a celui du corps.",
        codes.INVALID_DATE_RANGE: "fromDate doit etre anterieure ou egale a toDate.",
        codes.UNEXPECTED_ERROR: "Une erreur inattendue s'est produite lors du traitement.",
        codes.OPERATION_NOT_AVAILABLE: "Cette operation n'est pas disponible sur cette instance.",
        codes.NOT_ALLOWED_IN_READER_MODE: (
            "Les operations d'ecriture sont interdites sur une instance de lecture."
        ),
        codes.NOT_ALLOWED_IN_WRITER_MODE: (
            "Les operations de lecture sont interdites sur une instance d'ecriture."
        ),
        codes.VALIDATION_ERROR: "Donnees de requete invalides.",
        codes.INTERNAL_ERROR: "Une erreur inattendue s'est produite.",
        codes.DATABASE_ERROR: "La base de donnees est temporairement indisponible.",
    },
    Locale.DE_DE: {
        codes.SCHOOL_NOT_FOUND: "Die angeforderte Schule wurde nicht gefunden.",
        codes.SCHOOL_NOT_FOUND_AT_POINT_IN_TIME: (
            "Die Schule existierte zum angegebenen Zeitpunkt nicht."
        ),
        codes.NO_SCHOOLS_FOUND: "Es wurden keine Schulen gefunden.",
        codes.NO_SCHOOLS_IN_DATE_RANGE: "Im angegebenen Zeitraum wurden keine Schulen gefunden.",
        codes.NO_SCHOOL_VERSIONS_FOUND: "Fuer diese Schule wurden keine Versionen gefunden.",
        codes.FAILED_TO_ADD_SCHOOL: "Die Schule konnte nicht hinzugefuegt werden.",
        codes.FAILED_TO_UPDATE_SCHOOL: "Die Schule konnte nicht aktualisiert werden.",
        codes.FAILED_TO_DELETE_SCHOOL: "Die Schule konnte nicht geloescht werden.",
        codes.SCHOOL_VERSION_CONFLICT: (
            "Die Schule wurde von einer anderen Anfrage geaendert. Bitte neu laden."
        ),
        codes.SCHOOL_ID_MISMATCH: "Die ID in der URL stimmt nicht mit der ID im Inhalt ueberein.",
        codes.INVALID_DATE_RANGE: "fromDate muss vor oder gleich toDate liegen.",
        codes.UNEXPECTED_ERROR: "Bei der Verarbeitung ist ein unerwarteter Fehler aufgetreten.",
        codes.OPERATION_NOT_AVAILABLE: "Diese Operation ist auf dieser Instanz nicht verfuegbar.",
        codes.NOT_ALLOWED_IN_READER_MODE: (
            "Schreiboperationen sind auf einer Lese-Instanz nicht erlaubt."
        ),
        codes.NOT_ALLOWED_IN_WRITER_MODE: (
            "Leseoperationen sind auf einer Schreib-Instanz nicht erlaubt."
        ),
        codes.VALIDATION_ERROR: "Ungueltige Anfragedaten.",
        codes.INTERNAL_ERROR: "Ein unerwarteter Fehler ist aufgetreten.",
        codes.DATABASE_ERROR: "Die Datenbank ist voruebergehend nicht verfuegbar.",
    },
}


def resolve_locale(
    accept_language: str | None, default: Locale = DEFAULT_LOCALE,
) -> Locale:
    """Pick the best supported locale from an Accept-Language header."""
    if not accept_language:
        return default
    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        if not tag:
            continue
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        if quality <= 0:
            continue
        candidates.append((-quality, position, tag.strip().lower()))

    for _, _, tag in sorted(candidates):
        for locale in Locale:
            if tag == locale.value.lower() or tag == locale.value.split("-")[0].lower():
                return locale
    return default


def localize(code: str, locale: Locale = DEFAULT_LOCALE) -> str | None:
    """Localized message for an error code, or None when the code is unknown."""
    message = _MESSAGES.get(locale, {}).get(code)
    if message is None and locale != DEFAULT_LOCALE:
        message = _MESSAGES[DEFAULT_LOCALE].get(code)
    return message
