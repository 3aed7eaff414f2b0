from datetime import datetime

import pytest

from wp_lektor.models import ContentItem
from wp_lektor.source import ContentRepository

HOME = "http://example.org"


class FakeRepository(ContentRepository):
    def __init__(self, items=(), attachments=None, uploads_dir=None, taxonomies=None, options=None):
        self.items = {item.id: item for item in items}
        self.attachments = attachments or {}
        self.uploads_dir = uploads_dir
        self.taxonomies = taxonomies or {"post": ["category", "post_tag", "post_format"]}
        self.options = options or {}

    def get_posts(self, post_types, status="publish"):
        return sorted(
            item.id
            for item in self.items.values()
            if item.status == status and item.post_type in post_types
        )

    def get_post(self, post_id):
        return self.items[post_id]

    def taxonomies_for(self, post_type):
        return list(self.taxonomies.get(post_type, []))

    def attachment_url(self, attachment_id):
        return self.attachments.get(attachment_id, (None, None))[0]

    def attachment_path(self, attachment_id):
        return self.attachments.get(attachment_id, (None, None))[1]

    def home_url(self):
        return HOME

    def site_options(self):
        return dict(self.options)


def make_post(**overrides):
    fields = dict(
        id=1,
        post_type="post",
        title="Test Post",
        content="This is a test <strong>post</strong>.",
        excerpt="This is a test post.",
        author="Tester",
        date=datetime(2014, 1, 1),
        slug="test-post",
        permalink=HOME + "/test-post/",
        terms={"category": ["Testing"], "post_tag": ["tag1", "tag2"]},
    )
    fields.update(overrides)
    return ContentItem(**fields)


@pytest.fixture
def uploads(tmp_path):
    root = tmp_path / "uploads"
    (root / "2016" / "04").mkdir(parents=True)
    (root / "2016" / "04" / "photo.jpg").write_bytes(b"jpeg data")
    (root / "2016" / "04" / "x.png").write_bytes(b"png data")
    return root


@pytest.fixture
def site(uploads):
    """A post with a featured image, a page and a sub page, plus a draft."""
    items = [
        make_post(featured_image=10),
        ContentItem(
            id=2,
            post_type="page",
            title="Test Page",
            content="This is a test <strong>page</strong>.",
            excerpt="This is a test page.",
            author="Tester",
            date=datetime(2014, 1, 2),
            slug="test-page",
            permalink=HOME + "/test-page/",
        ),
        ContentItem(
            id=3,
            post_type="page",
            title="Sub Page",
            content="This is a test <strong>sub</strong> page.",
            author="Tester",
            date=datetime(2014, 1, 3),
            slug="sub-page",
            parent=2,
            permalink=HOME + "/test-page/sub-page/",
        ),
        make_post(id=4, slug="draft", status="draft"),
    ]
    attachments = {
        10: (
            HOME + "/wp-content/uploads/2016/04/photo.jpg",
            str(uploads / "2016" / "04" / "photo.jpg"),
        )
    }
    return FakeRepository(
        items,
        attachments=attachments,
        uploads_dir=str(uploads),
        options={
            "blogname": "Example Blog",
            "blogdescription": "Just another site",
            "siteurl": HOME,
            "home": HOME,
            "_transient_x": "hidden",
        },
    )


WXR = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/1.2/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:wfw="http://wellformedweb.org/CommentAPI/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/1.2/">
<channel>
    <title>Example Blog</title>
    <link>http://example.org</link>
    <description>Just another site</description>
    <wp:wxr_version>1.2</wp:wxr_version>
    <wp:base_site_url>http://example.org</wp:base_site_url>
    <wp:base_blog_url>http://example.org</wp:base_blog_url>
    <wp:author>
        <wp:author_id>1</wp:author_id>
        <wp:author_login><![CDATA[testuser]]></wp:author_login>
        <wp:author_display_name><![CDATA[Tester]]></wp:author_display_name>
    </wp:author>
    <item>
        <title>Test Post</title>
        <link>http://example.org/test-post/</link>
        <dc:creator><![CDATA[testuser]]></dc:creator>
        <content:encoded><![CDATA[This is a test <strong>post</strong>.]]></content:encoded>
        <excerpt:encoded><![CDATA[This is a test post.]]></excerpt:encoded>
        <wp:post_id>12</wp:post_id>
        <wp:post_date><![CDATA[2014-01-01 00:00:00]]></wp:post_date>
        <wp:post_name><![CDATA[test-post]]></wp:post_name>
        <wp:status><![CDATA[publish]]></wp:status>
        <wp:post_parent>0</wp:post_parent>
        <wp:post_type><![CDATA[post]]></wp:post_type>
        <category domain="category" nicename="testing"><![CDATA[Testing]]></category>
        <category domain="post_tag" nicename="tag1"><![CDATA[tag1]]></category>
        <category domain="post_tag" nicename="tag2"><![CDATA[tag2]]></category>
        <category domain="post_format" nicename="post-format-aside"><![CDATA[Aside]]></category>
        <wp:postmeta>
            <wp:meta_key><![CDATA[_thumbnail_id]]></wp:meta_key>
            <wp:meta_value><![CDATA[20]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[rating]]></wp:meta_key>
            <wp:meta_value><![CDATA[5]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[steps]]></wp:meta_key>
            <wp:meta_value><![CDATA[a:2:{i:0;s:3:"one";i:1;s:3:"two";}]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[mood]]></wp:meta_key>
            <wp:meta_value><![CDATA[happy]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[mood]]></wp:meta_key>
            <wp:meta_value><![CDATA[calm]]></wp:meta_value>
        </wp:postmeta>
    </item>
    <item>
        <title>Test Page</title>
        <link>http://example.org/test-page/</link>
        <dc:creator><![CDATA[testuser]]></dc:creator>
        <content:encoded><![CDATA[This is a test <strong>page</strong>.]]></content:encoded>
        <excerpt:encoded><![CDATA[]]></excerpt:encoded>
        <wp:post_id>13</wp:post_id>
        <wp:post_date><![CDATA[2014-01-02 00:00:00]]></wp:post_date>
        <wp:post_name><![CDATA[test-page]]></wp:post_name>
        <wp:status><![CDATA[publish]]></wp:status>
        <wp:post_parent>0</wp:post_parent>
        <wp:post_type><![CDATA[page]]></wp:post_type>
    </item>
    <item>
        <title>Sub Page</title>
        <link>http://example.org/test-page/sub-page/</link>
        <dc:creator><![CDATA[testuser]]></dc:creator>
        <content:encoded><![CDATA[This is a test <strong>sub</strong> page.]]></content:encoded>
        <excerpt:encoded><![CDATA[]]></excerpt:encoded>
        <wp:post_id>14</wp:post_id>
        <wp:post_date><![CDATA[2014-01-03 00:00:00]]></wp:post_date>
        <wp:post_name><![CDATA[sub-page]]></wp:post_name>
        <wp:status><![CDATA[publish]]></wp:status>
        <wp:post_parent>13</wp:post_parent>
        <wp:post_type><![CDATA[page]]></wp:post_type>
    </item>
    <item>
        <title>Unfinished</title>
        <link>http://example.org/?p=15</link>
        <dc:creator><![CDATA[testuser]]></dc:creator>
        <content:encoded><![CDATA[Not yet.]]></content:encoded>
        <wp:post_id>15</wp:post_id>
        <wp:post_date><![CDATA[2014-01-04 00:00:00]]></wp:post_date>
        <wp:post_name><![CDATA[unfinished]]></wp:post_name>
        <wp:status><![CDATA[draft]]></wp:status>
        <wp:post_parent>0</wp:post_parent>
        <wp:post_type><![CDATA[post]]></wp:post_type>
    </item>
    <item>
        <title>photo</title>
        <link>http://example.org/test-post/photo/</link>
        <dc:creator><![CDATA[testuser]]></dc:creator>
        <wp:post_id>20</wp:post_id>
        <wp:post_date><![CDATA[2016-04-01 00:00:00]]></wp:post_date>
        <wp:post_name><![CDATA[photo]]></wp:post_name>
        <wp:status><![CDATA[inherit]]></wp:status>
        <wp:post_parent>12</wp:post_parent>
        <wp:post_type><![CDATA[attachment]]></wp:post_type>
        <wp:attachment_url><![CDATA[http://example.org/wp-content/uploads/2016/04/photo.jpg]]></wp:attachment_url>
        <wp:postmeta>
            <wp:meta_key><![CDATA[_wp_attached_file]]></wp:meta_key>
            <wp:meta_value><![CDATA[2016/04/photo.jpg]]></wp:meta_value>
        </wp:postmeta>
    </item>
</channel>
</rss>
"""


@pytest.fixture
def wxr_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(WXR, encoding="utf-8")
    return path
