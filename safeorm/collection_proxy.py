class CollectionProxy:
    """Public handle for a collection association, returned by ``owner.<name>``.

    Construction is forwarded unchanged to the association; reads load the
    target on first use.
    """

    def __init__(self, association):
        self._association = association

    @property
    def association(self):
        return self._association

    def build(self, attributes=None, customizer=None, role=None):
        return self._association.build(attributes, customizer, role)

    new = build

    def create(self, attributes=None, customizer=None, role=None):
        return self._association.create(attributes, customizer, role)

    def create_or_fail(self, attributes=None, customizer=None, role=None):
        return self._association.create_or_fail(attributes, customizer, role)

    def append(self, *records):
        return self._association.concat(*records)

    concat = append

    def to_list(self):
        return list(self._association.load_target())

    def reload(self):
        self._association.reload()
        return self

    def __iter__(self):
        return iter(self.to_list())

    def __len__(self):
        return len(self._association.load_target())

    def __getitem__(self, index):
        return self._association.load_target()[index]

    def __contains__(self, record):
        return record in self._association.load_target()

    def __repr__(self):
        return f"<CollectionProxy {self._association.reflection.name} {self.to_list()!r}>"
