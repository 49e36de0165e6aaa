"""Bundled hymn catalogue used to seed an empty library."""

from liturgy_slides.liturgy import Song, SongCategory


def _song(key, title, category, lyrics, author=None):
    return Song(id=f"builtin-{key}", title=title, lyrics=lyrics.strip(), author=author, category=category)


BUILTIN_SONGS = [
    _song(
        "peuple-de-dieu",
        "Peuple de Dieu, marche joyeux",
        SongCategory.ENTRANCE,
        """
Peuple de Dieu, marche joyeux,
Alléluia, alléluia !
À la rencontre de ton Dieu,
Alléluia, alléluia !

R/ Chantez, priez, célébrez le Seigneur,
Dieu nous rassemble en son amour !
Chantez, priez, célébrez le Seigneur,
Dieu nous rassemble pour toujours !

Peuple de Dieu, tu es le corps
Du Christ Jésus ressuscité !
Peuple de Dieu, tu es l'Église,
Tu es l'amour de Dieu semé !
""",
        author="Jo Akepsimas",
    ),
    _song(
        "corps-du-christ",
        "Nous sommes le corps du Christ",
        SongCategory.ENTRANCE,
        """
Nous sommes le corps du Christ,
Chacun de nous est un membre de ce corps.
Chacun reçoit la grâce de l'Esprit
Pour le bien du corps entier.

R/ Nous sommes le corps du Christ,
Nous sommes le corps du Christ !

Dieu nous a tous appelés
À tenir la même espérance.
Nous sommes le peuple de Dieu,
Nous sommes l'Église du Seigneur.
""",
        author="Communauté de l'Emmanuel",
    ),
    _song(
        "kyrie-taize",
        "Kyrie Eleison (Taizé)",
        SongCategory.KYRIE,
        """
Kyrie eleison, Kyrie eleison,
Kyrie eleison.

Christe eleison, Christe eleison,
Christe eleison.

Kyrie eleison, Kyrie eleison,
Kyrie eleison.
""",
        author="Communauté de Taizé",
    ),
    _song(
        "prends-pitie",
        "Prends pitié de nous, Seigneur",
        SongCategory.KYRIE,
        """
Prends pitié de nous, Seigneur,
Prends pitié de nous !
Prends pitié de nous, Seigneur,
Prends pitié de nous !

Ô Christ, prends pitié de nous,
Ô Christ, prends pitié !
Ô Christ, prends pitié de nous,
Ô Christ, prends pitié !
""",
    ),
    _song(
        "gloria-taize",
        "Gloria (Taizé)",
        SongCategory.GLORIA,
        """
Gloria, gloria, in excelsis Deo !
Gloria, gloria, alléluia, alléluia !
""",
        author="Communauté de Taizé",
    ),
    _song(
        "gloire-a-dieu",
        "Gloire à Dieu au plus haut des cieux",
        SongCategory.GLORIA,
        """
Gloire à Dieu au plus haut des cieux,
Et paix sur la terre aux hommes qu'il aime.
Nous te louons, nous te bénissons,
Nous t'adorons, nous te glorifions,
Nous te rendons grâce pour ton immense gloire,
Seigneur Dieu, Roi du ciel,
Dieu le Père tout-puissant.

Seigneur, Fils unique, Jésus Christ,
Seigneur Dieu, Agneau de Dieu,
Le Fils du Père,
Toi qui enlèves le péché du monde,
Prends pitié de nous ;
Toi qui enlèves le péché du monde,
Reçois notre prière.
""",
    ),
]
