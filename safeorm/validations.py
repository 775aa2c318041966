class Errors:
    """Validation messages keyed by attribute name."""

    def __init__(self, record):
        self._record = record
        self._messages = {}

    def add(self, attribute, message):
        self._messages.setdefault(attribute, []).append(message)

    def clear(self):
        self._messages.clear()

    def __getitem__(self, attribute):
        return list(self._messages.get(attribute, []))

    def __contains__(self, attribute):
        return bool(self._messages.get(attribute))

    def __len__(self):
        return sum(len(messages) for messages in self._messages.values())

    def __bool__(self):
        return len(self) > 0

    def __iter__(self):
        return iter(self._messages)

    def full_messages(self):
        out = []
        for attribute, messages in self._messages.items():
            label = attribute.replace("_", " ").capitalize()
            out.extend(f"{label} {message}" for message in messages)
        return out

    def to_dict(self):
        return {attribute: list(messages) for attribute, messages in self._messages.items()}

    def __repr__(self):
        return f"<Errors {self.to_dict()}>"


def _blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_presence(record):
    mapper = record._mapper
    required = [name for name, col in mapper.columns.items()
                if not col.nullable and name != mapper.pk]
    for name in mapper.meta.get("validates_presence_of", ()):
        if name not in required:
            required.append(name)

    for name in required:
        if name in mapper.reflections:
            value = record.association(name).reader()
        else:
            value = record.__dict__.get(name)
        if _blank(value):
            record.errors.add(name, "can't be blank")
