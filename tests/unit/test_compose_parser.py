import yaml
from planit_deploy.PARSERS.compose_parser import ComposeParser

def test_parse(tmp_path):
    compose_content = {
        'version': '3.8',
        'services': {
            'nginx': {
                'image': 'nginx:alpine',
                'ports': ['8081:80', '8443:443'],
                'depends_on': {'backend': {'condition': 'service_healthy'}},
            },
            'backend': {
                'image': 'planit_backend:latest',
                'ports': [{'target': 8000, 'published': 8080}],
            },
            'celery_beat': {
                'image': 'planit_backend:latest',
                'depends_on': ['backend'],
            },
        },
    }

    compose_file = tmp_path / "docker-compose.yml"
    with open(compose_file, 'w') as f:
        yaml.dump(compose_content, f)

    parser = ComposeParser(context={})
    config = parser.parse(str(compose_file))

    assert set(config.services) == {'nginx', 'backend', 'celery_beat'}
    assert config.services['nginx'].ports == {80: 8081, 443: 8443}
    assert config.services['nginx'].depends_on == ['backend']
    assert config.services['backend'].ports == {8000: 8080}
    assert config.services['celery_beat'].depends_on == ['backend']
    assert config.host_port('backend', 8000) == 8080
    assert config.host_port('celery_beat', 8000) is None
    assert config.missing(['backend', 'frontend']) == ['frontend']

def test_ports_are_interpolated():
    content = """
services:
  postgres:
    image: postgres:15.5-alpine
    ports:
      - "${PG_PORT:-5433}:5432"
      - "127.0.0.1:6000:6000/tcp"
"""
    parsed = ComposeParser(context={'PG_PORT': '15433'}).parse_from_string(content)
    assert parsed.services['postgres'].ports == {5432: 15433, 6000: 6000}

    defaulted = ComposeParser(context={}).parse_from_string(content)
    assert defaulted.host_port('postgres', 5432) == 5433

def test_empty_file():
    assert ComposeParser(context={}).parse_from_string("").services == {}
