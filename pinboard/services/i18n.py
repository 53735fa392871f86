TRANSLATIONS = {
    "en": {
        "INVALID_FORMAT": "Could not read a coordinate from this line. Paste a pair such as 13.7500, 100.4913 or a full Google Maps link (short goo.gl links are not supported).",
        "IO_FAILURE": "Could not reach the backing service. Your data is unchanged; please try again.",
        "NOT_FOUND": "This pin does not exist.",
        "SHARE_NOT_FOUND": "The shared pin could not be found.",
        "AUTHENTICATION_FAILED": "Invalid username or password.",
        "AUTH_REQUIRED": "Please log in.",
        "EXTERNAL_PIN_READ_ONLY": "This pin comes from the booking calendar and cannot be edited here.",
        "INVALID_FIELDS": "The pin could not be updated with these values.",
    },
    "th": {
        "INVALID_FORMAT": "ไม่สามารถดึงพิกัดได้ กรุณาใช้พิกัดโดยตรง เช่น 13.7500, 100.4913 หรือลิงก์แบบเต็มจาก Google Maps (ลิงก์แบบสั้น goo.gl ไม่รองรับ)",
        "IO_FAILURE": "ไม่สามารถเชื่อมต่อบริการได้ ข้อมูลยังไม่ถูกเปลี่ยนแปลง กรุณาลองใหม่",
        "NOT_FOUND": "ไม่พบหมุดนี้",
        "SHARE_NOT_FOUND": "ไม่พบหมุดที่แชร์",
        "AUTHENTICATION_FAILED": "ชื่อผู้ใช้หรือรหัสผ่านไม่ถูกต้อง",
        "AUTH_REQUIRED": "กรุณาเข้าสู่ระบบ",
        "EXTERNAL_PIN_READ_ONLY": "หมุดนี้มาจากปฏิทินการจอง ไม่สามารถแก้ไขได้ที่นี่",
        "INVALID_FIELDS": "ไม่สามารถบันทึกข้อมูลหมุดนี้ได้",
    },
}

def get_translations(lang: str = "en") -> dict:
    # Basic fallback
    if lang not in TRANSLATIONS:
        lang = "en"
    return TRANSLATIONS[lang]

def get_message(code: str, lang: str = "en") -> str:
    return get_translations(lang).get(code) or TRANSLATIONS["en"].get(code, code)

def language_from_header(accept_language: str) -> str:
    # Simple best-effort extraction (e.g., "th-TH,en;q=0.9")
    return (accept_language.split(",")[0].split("-")[0] or "en").strip().lower()
